import sys
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

# libmpv is not needed for these tests
sys.modules['mpv'] = MagicMock()

from shared.errors import TransportError  # noqa: E402
from player.engine import (  # noqa: E402
    END_FILE_EOF, END_FILE_ERROR, END_FILE_EVENT, START_FILE_EVENT, MpvTransport,
)


def _event(event_id, **data):
    return SimpleNamespace(event_id=event_id, data=SimpleNamespace(**data))


class TestMpvTransport(unittest.TestCase):
    def setUp(self):
        self.mpv = MagicMock()
        self.mpv.time_pos = None
        self.transport = MpvTransport(player=self.mpv)
        self.errors = []
        self.transport.on_error(self.errors.append)

    def test_registers_observers(self):
        observed = [c.args[0] for c in self.mpv.observe_property.call_args_list]
        self.assertEqual(observed, ['time-pos', 'duration', 'eof-reached', 'idle-active'])
        self.mpv.register_event_callback.assert_called_once()
        self.assertEqual(self.mpv.volume, 100)

    def test_load_then_play(self):
        self.transport.load("http://cdn/1.mp3")
        self.mpv.play.assert_called_once_with("http://cdn/1.mp3")
        self.assertTrue(self.mpv.pause)

        future = self.transport.play()
        self.assertTrue(future.result(0))
        self.assertFalse(self.mpv.pause)

        self.transport.pause()
        self.assertTrue(self.mpv.pause)

    def test_play_without_source_fails(self):
        with self.assertRaises(TransportError):
            self.transport.play().result(0)

    def test_load_failure_is_reported(self):
        self.mpv.play.side_effect = RuntimeError("bad url")
        self.transport.load("http://cdn/broken")
        self.assertEqual(len(self.errors), 1)
        self.assertIsInstance(self.errors[0], TransportError)
        with self.assertRaises(TransportError):
            self.transport.play().result(0)

    def test_seek_is_clamped_to_duration(self):
        durations = []
        self.transport.on_duration_known(durations.append)
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_duration('duration', 200.0)
        self.assertEqual(durations, [200.0])

        self.assertEqual(self.transport.seek(250), 200.0)
        self.mpv.seek.assert_called_with(200.0, reference='absolute')

    def test_volume_and_mute(self):
        self.transport.set_volume(0.5)
        self.assertEqual(self.mpv.volume, 50)
        self.transport.set_muted(True)
        self.assertEqual(self.mpv.volume, 0)
        self.transport.set_muted(False)
        self.assertEqual(self.mpv.volume, 50)

    def test_time_updates_are_throttled(self):
        times = []
        self.transport.on_time_update(times.append)
        self.transport._handle_time_update('time-pos', 1.0)
        self.transport._handle_time_update('time-pos', 1.01)
        self.transport._handle_time_update('time-pos', None)
        self.assertEqual(times, [1.0])

    def _ended(self):
        ended = []
        self.transport.on_ended(lambda: ended.append(True))
        return ended

    def test_eof_emits_ended_once(self):
        ended = self._ended()
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_eof('eof-reached', False)
        self.transport._handle_eof('eof-reached', True)
        self.transport._handle_event(_event(START_FILE_EVENT, playlist_entry_id=1))
        self.transport._handle_event(_event(END_FILE_EVENT, reason=END_FILE_EOF, playlist_entry_id=1))
        self.assertEqual(ended, [True])

    def test_end_file_eof_event_emits_ended(self):
        ended = self._ended()
        self.transport.load("http://cdn/1.mp3")
        self.transport.play()
        self.transport._handle_event(_event(START_FILE_EVENT, playlist_entry_id=1))
        self.transport._handle_event(_event(END_FILE_EVENT, reason=END_FILE_EOF, playlist_entry_id=1))
        self.assertEqual(ended, [True])
        self.assertEqual(self.errors, [])

    def test_idle_while_playing_emits_ended(self):
        ended = self._ended()
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_idle('idle-active', True)
        self.assertEqual(ended, [])

        self.transport.play()
        self.transport._handle_idle('idle-active', True)
        self.assertEqual(ended, [True])

    def test_end_file_error_event(self):
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_event(_event(START_FILE_EVENT, playlist_entry_id=1))
        self.transport._handle_event(_event(END_FILE_EVENT, reason=END_FILE_ERROR, error=-13, playlist_entry_id=1))
        self.assertEqual(len(self.errors), 1)
        self.assertIsInstance(self.errors[0], TransportError)
        with self.assertRaises(TransportError):
            self.transport.play().result(0)

    def test_end_file_for_replaced_source_is_ignored(self):
        ended = self._ended()
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_event(_event(START_FILE_EVENT, playlist_entry_id=1))
        self.transport.load("http://cdn/2.mp3")
        # mpv reports the old file ending before the new one starts
        self.transport._handle_event(_event(END_FILE_EVENT, reason=END_FILE_ERROR, playlist_entry_id=1))
        self.transport._handle_event(_event(START_FILE_EVENT, playlist_entry_id=2))
        self.transport._handle_event(_event(END_FILE_EVENT, reason=END_FILE_EOF, playlist_entry_id=1))
        self.assertEqual(self.errors, [])
        self.assertEqual(ended, [])
        self.assertTrue(self.transport.play().result(0))

    def test_enum_event_ids_are_unwrapped(self):
        ended = self._ended()
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_event(_event(SimpleNamespace(value=START_FILE_EVENT), playlist_entry_id=5))
        self.transport._handle_event(
            _event(SimpleNamespace(value=END_FILE_EVENT), reason=SimpleNamespace(value=END_FILE_EOF), playlist_entry_id=5)
        )
        self.assertEqual(ended, [True])

    def test_stop_unloads(self):
        self.transport.load("http://cdn/1.mp3")
        self.transport.stop()
        self.mpv.stop.assert_called_once_with()
        with self.assertRaises(TransportError):
            self.transport.play().result(0)

    def test_other_events_ignored(self):
        self.transport.load("http://cdn/1.mp3")
        self.transport._handle_event(_event(1, reason=END_FILE_ERROR))
        self.transport._handle_event(MagicMock())
        self.assertEqual(self.errors, [])


if __name__ == '__main__':
    unittest.main()
