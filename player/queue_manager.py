"""
Play queue for the controller.
Each screen hands the controller its own ordering (chart order, favourites
order, search results) through one of these.
"""

import logging
import random
import threading
from typing import Callable, List, Optional

from shared.models import Track

logger = logging.getLogger(__name__)

REPEAT_MODES = ("off", "all", "one")


class QueueManager:
    """
    Ordered, in-memory track queue. Session-based; nothing is persisted.
    """

    def __init__(self, tracks: Optional[List[Track]] = None, repeat_mode: str = "off"):
        self._queue: List[Track] = list(tracks or [])
        self._repeat_mode = "off"
        self._lock = threading.Lock()
        self._on_change_callbacks: List[Callable[[], None]] = []
        self.set_repeat_mode(repeat_mode)

    def set_repeat_mode(self, mode: str) -> None:
        if mode not in REPEAT_MODES:
            raise ValueError(f"Unknown repeat mode: {mode}")
        with self._lock:
            self._repeat_mode = mode
        self._notify_change()

    def get_repeat_mode(self) -> str:
        return self._repeat_mode

    def replace(self, tracks: List[Track]) -> None:
        """Swap in a new ordering source."""
        with self._lock:
            self._queue = list(tracks)
        self._notify_change()

    def shuffle(self) -> None:
        with self._lock:
            random.shuffle(self._queue)
        self._notify_change()

    def add(self, track: Track) -> None:
        with self._lock:
            self._queue.append(track)
            logger.debug("Added to queue: %s", track.title)
        self._notify_change()

    def remove(self, index: int) -> bool:
        """Remove the track at ``index``. False if out of range."""
        with self._lock:
            if not 0 <= index < len(self._queue):
                return False
            self._queue.pop(index)
        self._notify_change()
        return True

    def move(self, from_index: int, to_index: int) -> bool:
        with self._lock:
            if not (0 <= from_index < len(self._queue) and 0 <= to_index < len(self._queue)):
                return False
            track = self._queue.pop(from_index)
            self._queue.insert(to_index, track)
        self._notify_change()
        return True

    def get_all(self) -> List[Track]:
        with self._lock:
            return self._queue.copy()

    def size(self) -> int:
        with self._lock:
            return len(self._queue)

    def is_empty(self) -> bool:
        return self.size() == 0

    def _index_of(self, track: Optional[Track]) -> int:
        if track is None:
            return -1
        for i, candidate in enumerate(self._queue):
            if candidate.id == track.id:
                return i
        return -1

    def next_after(self, track: Optional[Track], auto: bool = False) -> Optional[Track]:
        """
        Track after ``track``. A track that is not queued starts from the top.
        Repeat one returns ``track`` itself, but only when the track ended on
        its own (``auto``); a manual skip still moves on. Repeat all wraps around.
        """
        with self._lock:
            if not self._queue:
                return None
            index = self._index_of(track)
            if auto and index >= 0 and self._repeat_mode == "one":
                return self._queue[index]
            if index + 1 < len(self._queue):
                return self._queue[index + 1]
            if self._repeat_mode == "all":
                return self._queue[0]
            return None

    def previous_before(self, track: Optional[Track]) -> Optional[Track]:
        with self._lock:
            if not self._queue:
                return None
            index = self._index_of(track)
            if index < 0:
                return self._queue[0]
            if index > 0:
                return self._queue[index - 1]
            if self._repeat_mode == "all":
                return self._queue[-1]
            return None

    def add_change_callback(self, callback: Callable[[], None]) -> None:
        if callback not in self._on_change_callbacks:
            self._on_change_callbacks.append(callback)

    def remove_change_callback(self, callback: Callable[[], None]) -> None:
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self) -> None:
        for callback in self._on_change_callbacks:
            try:
                callback()
            except Exception as e:
                logger.error("Error in queue change callback: %s", e)
