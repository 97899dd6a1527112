"""
Media transport binding: the one contact point with an audio backend.
A transport is bound to a single source URL at a time.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Callable, List

logger = logging.getLogger(__name__)


class MediaTransport(ABC):
    """
    play/pause/seek/volume primitives plus four events:
    time_update(seconds), duration_known(seconds), ended(), error(exc).
    Events are the only callback points; everything else is synchronous.
    """

    def __init__(self):
        self._time_callbacks: List[Callable[[float], None]] = []
        self._duration_callbacks: List[Callable[[float], None]] = []
        self._ended_callbacks: List[Callable[[], None]] = []
        self._error_callbacks: List[Callable[[BaseException], None]] = []
        self.volume = 1.0
        self.muted = False

    @abstractmethod
    def load(self, url: str) -> None:
        """Assign a source and rewind to 0. Decode failures go to error callbacks."""

    @abstractmethod
    def play(self) -> Future:
        """Request playback start. The future fails if the host refuses."""

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Unload the source. Nothing is audible until the next load()."""

    @abstractmethod
    def _apply_seek(self, seconds: float) -> None:
        pass

    @abstractmethod
    def _apply_volume(self, level: float) -> None:
        """Push the effective volume (0..1) to the backend."""

    @property
    @abstractmethod
    def duration(self) -> float:
        """Duration of the loaded source, 0 when unknown."""

    def seek(self, seconds: float) -> float:
        """Seek, clamped to [0, duration]. Returns the applied position."""
        upper = self.duration if self.duration > 0 else 0.0
        position = max(0.0, min(float(seconds), upper))
        self._apply_seek(position)
        return position

    def set_volume(self, level: float) -> None:
        self.volume = max(0.0, min(1.0, float(level)))
        self._apply_volume(self.effective_volume)

    def set_muted(self, muted: bool) -> None:
        self.muted = bool(muted)
        self._apply_volume(self.effective_volume)

    @property
    def effective_volume(self) -> float:
        return 0.0 if self.muted else self.volume

    # Callback registration
    def on_time_update(self, callback: Callable[[float], None]) -> None:
        self._time_callbacks.append(callback)

    def on_duration_known(self, callback: Callable[[float], None]) -> None:
        self._duration_callbacks.append(callback)

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    def on_error(self, callback: Callable[[BaseException], None]) -> None:
        self._error_callbacks.append(callback)

    # Event emission
    def _emit(self, callbacks, *args) -> None:
        for callback in list(callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("Transport callback %r failed", callback)

    def emit_time_update(self, seconds: float) -> None:
        self._emit(self._time_callbacks, seconds)

    def emit_duration_known(self, seconds: float) -> None:
        self._emit(self._duration_callbacks, seconds)

    def emit_ended(self) -> None:
        self._emit(self._ended_callbacks)

    def emit_error(self, error: BaseException) -> None:
        self._emit(self._error_callbacks, error)
