"""
Playback controller: the single source of truth for what is audible.

    Idle -> Loading -> Playing <-> Paused
    Playing/Paused --(ended)--> Advancing -> Loading | Idle

Transport failures never propagate to callers; the state degrades to
Paused (a track is loaded) or Idle.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional

from shared.models import PlaybackSession, PlaybackSnapshot, PlayerState, Track
from player.transport import MediaTransport

logger = logging.getLogger(__name__)


def _done(value) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


class PlaybackController:
    """
    Public play/pause/next/previous/seek/volume/favourite API.

    ``queue`` supplies ordering (``next_after``/``previous_before``) and is
    owned by whichever screen is active; ``favourites`` is the optimistic
    favourites list used by ``toggle_favorite``.
    """

    def __init__(self, context, transport: MediaTransport, favourites=None, queue=None):
        self.context = context
        self.transport = transport
        self.favourites = favourites
        self.queue = queue
        self.session = PlaybackSession()
        self.state = PlayerState.IDLE
        self._lock = threading.RLock()
        # Bumped on every track switch so stale play() completions are ignored
        self._generation = 0
        self._listeners: List[Callable[[PlaybackSnapshot], None]] = []

        transport.on_time_update(self._handle_time_update)
        transport.on_duration_known(self._handle_duration)
        transport.on_ended(self._handle_ended)
        transport.on_error(self._handle_error)
        transport.set_volume(self.session.volume)
        transport.set_muted(self.session.is_muted)

    @property
    def current_track(self) -> Optional[Track]:
        return self.session.current_track

    @property
    def is_playing(self) -> bool:
        return self.session.is_playing

    def set_queue(self, queue) -> None:
        with self._lock:
            self.queue = queue

    # Track switching

    def select_track(self, track: Track) -> Future:
        """
        Make ``track`` current and try to autoplay it. Re-selecting the
        current track is a no-op. Returns the autoplay future (never raises).
        """
        with self._lock:
            current = self.session.current_track
            if current is not None and current.id == track.id:
                return _done(self.session.is_playing)

            self._generation += 1
            generation = self._generation
            self.session.reset(track)
            self._set_state(PlayerState.LOADING)

            if not track.audio_url:
                logger.warning("Track %s has no audio URL", track.id)
                self._silence()
                self._set_state(PlayerState.PAUSED)
                return _done(False)

            try:
                self.transport.load(track.audio_url)
            except Exception as e:
                self._degrade(e)
                return _done(False)
            return self._start_playback(generation)

    def _start_playback(self, generation: int) -> Future:
        try:
            future = self.transport.play()
        except Exception as e:
            self._play_failed(generation, e)
            return _done(False)
        future.add_done_callback(lambda f: self._play_finished(generation, f))
        return future

    def _play_finished(self, generation: int, future: Future) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Ignoring play() result for a track that is no longer current")
                return
            if future.cancelled():
                error = RuntimeError("play() was cancelled")
            else:
                error = future.exception()
            if error is not None:
                self._play_failed(generation, error)
                return
            self.session.is_playing = True
            self._set_state(PlayerState.PLAYING)

    def _play_failed(self, generation: int, error: BaseException) -> None:
        with self._lock:
            if generation != self._generation:
                return
            # Autoplay refusal is expected; the user presses play instead
            logger.warning("Playback start refused: %s", error)
            self.session.is_playing = False
            self._set_state(PlayerState.PAUSED)

    # Transport controls

    def toggle_play(self) -> Optional[Future]:
        """Flip Playing/Paused. No-op while Idle, Loading or Advancing."""
        with self._lock:
            if self.state == PlayerState.PLAYING:
                self.pause()
                return _done(False)
            if self.state == PlayerState.PAUSED:
                track = self.session.current_track
                if track is None or not track.audio_url:
                    return None
                return self._start_playback(self._generation)
            return None

    def pause(self) -> None:
        with self._lock:
            if self.state not in (PlayerState.PLAYING, PlayerState.LOADING):
                return
            if self.state == PlayerState.LOADING:
                # A play() still in flight must not resume playback
                self._generation += 1
            try:
                self.transport.pause()
            except Exception as e:
                logger.warning("Error pausing: %s", e)
            self.session.is_playing = False
            self._set_state(PlayerState.PAUSED)

    def stop(self) -> None:
        """Drop the current track and return to Idle."""
        with self._lock:
            self._generation += 1
            if self.session.current_track is not None:
                self._silence()
            self.session.reset(None)
            self._set_state(PlayerState.IDLE)

    def _silence(self) -> None:
        try:
            self.transport.stop()
        except Exception as e:
            logger.warning("Error stopping transport: %s", e)

    def seek(self, position: float) -> Optional[float]:
        """Seek within the track. Ignored until the duration is known."""
        with self._lock:
            if self.session.current_track is None or not self.session.duration_known:
                return None
            try:
                applied = self.transport.seek(position)
            except Exception as e:
                logger.warning("Error seeking: %s", e)
                return None
            self.session.current_time = min(applied, self.session.duration)
            self._notify()
            return self.session.current_time

    def set_volume(self, level: float) -> None:
        """Volume in [0, 1]; changing it unmutes."""
        with self._lock:
            self.session.volume = max(0.0, min(1.0, float(level)))
            self.session.is_muted = False
            self.transport.set_volume(self.session.volume)
            self.transport.set_muted(False)
            self._notify()

    def set_muted(self, muted: bool) -> None:
        with self._lock:
            self.session.is_muted = bool(muted)
            self.transport.set_muted(self.session.is_muted)
            self._notify()

    def toggle_mute(self) -> None:
        self.set_muted(not self.session.is_muted)

    # Queue navigation

    def next(self) -> Optional[Future]:
        with self._lock:
            if self.queue is None:
                return None
            return self._go_to(self.queue.next_after(self.session.current_track))

    def previous(self) -> Optional[Future]:
        with self._lock:
            if self.queue is None:
                return None
            return self._go_to(self.queue.previous_before(self.session.current_track))

    def _go_to(self, track: Optional[Track]) -> Optional[Future]:
        if track is None:
            return None
        current = self.session.current_track
        if current is not None and current.id == track.id:
            return self._restart()
        return self.select_track(track)

    def _restart(self) -> Future:
        """Replay the current track from the start (repeat one)."""
        self.session.current_time = 0.0
        try:
            self.transport.seek(0)
        except Exception as e:
            logger.warning("Error rewinding: %s", e)
        self._set_state(PlayerState.LOADING)
        return self._start_playback(self._generation)

    # Favourites

    def toggle_favorite(self) -> Optional[Future]:
        """Toggle the current track in favourites without touching playback."""
        track = self.session.current_track
        if track is None or self.favourites is None:
            return None
        return self.favourites.toggle(track.id)

    @property
    def is_favorite(self) -> bool:
        track = self.session.current_track
        if track is None or self.favourites is None:
            return False
        return self.favourites.is_favourite(track.id)

    # Transport events

    def _handle_time_update(self, seconds: float) -> None:
        with self._lock:
            if self.session.current_track is None:
                return
            value = max(0.0, float(seconds))
            if self.session.duration_known:
                value = min(value, self.session.duration)
            self.session.current_time = value
            self._notify()

    def _handle_duration(self, seconds: float) -> None:
        with self._lock:
            if self.session.current_track is None or not seconds or seconds <= 0:
                return
            self.session.duration = float(seconds)
            self.session.current_time = min(self.session.current_time, self.session.duration)
            self._notify()

    def _handle_ended(self) -> None:
        with self._lock:
            if self.session.current_track is None:
                return
            self.session.is_playing = False
            self._set_state(PlayerState.ADVANCING)
            try:
                upcoming = self.queue.next_after(self.session.current_track, auto=True) if self.queue else None
            except Exception:
                logger.exception("Queue failed to pick the next track")
                upcoming = None
            if upcoming is None:
                self.stop()
            else:
                self._go_to(upcoming)

    def _handle_error(self, error: BaseException) -> None:
        with self._lock:
            logger.warning("Transport error: %s", error)
            if self.context is not None:
                self.context.notifier.error(f"Playback error: {error}")
            self._degrade(error)

    def _degrade(self, error: BaseException) -> None:
        logger.debug("Degrading playback state after %r", error)
        self.session.is_playing = False
        if self.session.current_track is None:
            self._set_state(PlayerState.IDLE)
        else:
            self._set_state(PlayerState.PAUSED)

    # Listeners

    def add_state_listener(self, callback: Callable[[PlaybackSnapshot], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_state_listener(self, callback: Callable[[PlaybackSnapshot], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def snapshot(self) -> PlaybackSnapshot:
        with self._lock:
            s = self.session
            return PlaybackSnapshot(
                state=self.state,
                track=s.current_track,
                is_playing=s.is_playing,
                current_time=s.current_time,
                duration=s.duration,
                volume=s.volume,
                is_muted=s.is_muted,
            )

    def _set_state(self, state: PlayerState) -> None:
        if state != self.state:
            logger.debug("Player state %s -> %s", self.state.value, state.value)
        self.state = state
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error("Error in playback listener: %s", e)
