import unittest

from shared.errors import ApiError
from player.library import TrackList
from player.sync import OptimisticSynchronizer

from fakes import WAIT, Gate, make_context, make_track


class TestTrackList(unittest.TestCase):
    def setUp(self):
        self.context = make_context()
        self.sync = OptimisticSynchronizer(notifier=self.context.notifier)

    def tearDown(self):
        self.sync.shutdown()

    def test_play_count_increments_before_server_answers(self):
        gate = Gate()
        self.context.api.record_play.side_effect = gate.hold()
        tracks = TrackList(self.context, self.sync, [make_track(1, plays_count=5)])

        future = tracks.record_play(1)
        self.assertEqual(tracks.get(1).plays_count, 6)

        gate.release()
        self.assertTrue(future.result(WAIT).ok)
        self.assertEqual(tracks.get(1).plays_count, 6)

    def test_failed_play_is_reverted(self):
        self.context.api.record_play.side_effect = ApiError("offline")
        tracks = TrackList(self.context, self.sync, [make_track(1, plays_count=5)])
        outcome = tracks.record_play(1).result(WAIT)
        self.assertFalse(outcome.ok)
        self.assertEqual(tracks.get(1).plays_count, 5)

    def test_unknown_track(self):
        tracks = TrackList(self.context, self.sync)
        self.assertIsNone(tracks.record_play(99))
        self.context.api.record_play.assert_not_called()

    def test_load_keeps_approved_only(self):
        self.context.api.get_tracks.return_value = [
            {"id": 1, "title": "A", "status": "approved"},
            {"id": 2, "title": "B", "status": "pending"},
        ]
        tracks = TrackList(self.context, self.sync)
        self.assertEqual([t.id for t in tracks.load()], [1])
        self.assertEqual(len(tracks.load(approved_only=False)), 2)

    def test_load_artist_tracks(self):
        self.context.api.get_artist_tracks.return_value = []
        TrackList(self.context, self.sync).load(artist_id=4)
        self.context.api.get_artist_tracks.assert_called_once_with(4)

    def test_search_and_charts(self):
        tracks = TrackList(self.context, self.sync, [
            make_track(1, title="Night Drive", artist_name="Kavinsky", plays_count=3),
            make_track(2, title="Sunrise", artist_name="Nova", plays_count=10),
            make_track(3, title="Nightcall", artist_name="Kavinsky", plays_count=7),
        ])
        self.assertEqual([t.id for t in tracks.search("night")], [1, 3])
        self.assertEqual([t.id for t in tracks.search("NOVA")], [2])
        self.assertEqual(len(tracks.search("")), 3)
        self.assertEqual([t.id for t in tracks.top_tracks(2)], [2, 3])


if __name__ == '__main__':
    unittest.main()
