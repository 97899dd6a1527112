"""
Media transport on libmpv (python-mpv).
Handles the low-level details of audio playback and turns mpv property
changes and file events into transport events.
"""

import logging
import time
from concurrent.futures import Future

import mpv

from shared.constants import TIME_UPDATE_INTERVAL
from shared.errors import TransportError
from player.transport import MediaTransport

logger = logging.getLogger(__name__)

# mpv_event_id
START_FILE_EVENT = 6
END_FILE_EVENT = 7

# mpv_end_file_reason
END_FILE_EOF = 0
END_FILE_ERROR = 4


def _plain(value):
    """ctypes enums from python-mpv carry their int in ``.value``."""
    return getattr(value, 'value', value)


class MpvTransport(MediaTransport):
    """Wrapper around MPV for streaming one URL at a time."""

    def __init__(self, player=None):
        super().__init__()
        # vo='null' because we are audio-only; ytdl off since we get direct URLs
        self.player = player or mpv.MPV(vo='null', ytdl=False)
        self._loaded = False
        self._playing = False
        self._finished = False
        # Set once mpv reports start-file for the source given to load()
        self._started = False
        self._entry_id = None
        self._last_duration = 0.0
        self._last_time_update = 0.0

        self.player.observe_property('time-pos', self._handle_time_update)
        self.player.observe_property('duration', self._handle_duration)
        self.player.observe_property('eof-reached', self._handle_eof)
        self.player.observe_property('idle-active', self._handle_idle)
        self.player.register_event_callback(self._handle_event)

        self._apply_volume(self.effective_volume)

    def load(self, url: str) -> None:
        self._loaded = False
        self._playing = False
        self._finished = False
        self._started = False
        self._entry_id = None
        self._last_duration = 0.0
        try:
            self.player.pause = True
            self.player.play(url)
            self._loaded = True
        except Exception as e:
            logger.warning("mpv could not load %s: %s", url, e)
            self.emit_error(TransportError(f"Could not load {url}: {e}"))

    def play(self) -> Future:
        future: Future = Future()
        if not self._loaded:
            future.set_exception(TransportError("No source loaded"))
            return future
        try:
            self.player.pause = False
            self._playing = True
            future.set_result(True)
        except Exception as e:
            future.set_exception(TransportError(f"Playback failed: {e}"))
        return future

    def pause(self) -> None:
        self._playing = False
        if self._loaded:
            self.player.pause = True

    def stop(self) -> None:
        self._playing = False
        self._loaded = False
        self.player.stop()

    def _apply_seek(self, seconds: float) -> None:
        if not self._loaded:
            return
        try:
            self.player.seek(seconds, reference='absolute')
        except Exception as e:
            logger.warning("Error seeking: %s", e)

    def _apply_volume(self, level: float) -> None:
        self.player.volume = round(level * 100)

    @property
    def duration(self) -> float:
        return self._last_duration

    def terminate(self) -> None:
        self.player.terminate()

    def _finish(self, source: str) -> None:
        """Emit ended once per loaded source."""
        if self._finished or not self._loaded:
            return
        logger.debug("Track finished (%s)", source)
        self._finished = True
        self._playing = False
        self.emit_ended()

    # Event handlers (called on mpv's event thread)
    def _handle_time_update(self, name, value):
        """Throttled to ~4 updates per second."""
        if value is None:
            return
        now = time.monotonic()
        if now - self._last_time_update >= TIME_UPDATE_INTERVAL:
            self._last_time_update = now
            self.emit_time_update(float(value))

    def _handle_duration(self, name, value):
        if value:
            self._last_duration = float(value)
            self.emit_duration_known(self._last_duration)

    def _handle_eof(self, name, value):
        if value:
            self._finish("eof-reached")

    def _handle_idle(self, name, value):
        # Without keep-open mpv unloads the file at its end and goes idle
        if value and self._playing:
            self._finish("idle-active")

    def _handle_event(self, event):
        event_id = _plain(getattr(event, 'event_id', None))
        data = getattr(event, 'data', None)
        entry_id = getattr(data, 'playlist_entry_id', None)

        if event_id == START_FILE_EVENT:
            self._started = True
            self._entry_id = entry_id
            return
        if event_id != END_FILE_EVENT:
            return

        # end-file for a source replaced by a later load()
        if not self._started or (
            entry_id is not None and self._entry_id is not None and entry_id != self._entry_id
        ):
            logger.debug("Ignoring end-file for a previous source (entry %s)", entry_id)
            return

        reason = _plain(getattr(data, 'reason', None))
        if reason == END_FILE_EOF:
            self._finish("end-file")
        elif reason == END_FILE_ERROR:
            self._loaded = False
            self._playing = False
            self.emit_error(TransportError(f"mpv could not decode source: {getattr(data, 'error', '')}"))
