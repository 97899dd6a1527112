"""
Track lists for the player.
Holds the cached catalogue (or an artist's tracks) and applies play-count
increments optimistically.
"""

import logging
from typing import Callable, List, Optional

from shared.models import Track, TrackStatus
from player.sync import Mutation, OptimisticSynchronizer

logger = logging.getLogger(__name__)


class TrackList:
    """Cached, possibly stale copy of a backend track list."""

    def __init__(self, context, synchronizer: OptimisticSynchronizer, tracks: Optional[List[Track]] = None):
        self._context = context
        self._sync = synchronizer
        self._lock = synchronizer.lock
        self._tracks: List[Track] = list(tracks or [])
        self._on_change_callbacks: List[Callable[[], None]] = []

    def load(self, artist_id=None, approved_only: bool = True) -> List[Track]:
        """Fetch the catalogue, or one artist's tracks when ``artist_id`` is given."""
        api = self._context.api
        data = api.get_artist_tracks(artist_id) if artist_id is not None else api.get_tracks()
        tracks = [Track.from_dict(t) for t in data]
        if approved_only:
            tracks = [t for t in tracks if t.status == TrackStatus.APPROVED]
        with self._lock:
            self._tracks = tracks
            self._notify_change()
            return list(self._tracks)

    def get_all_tracks(self) -> List[Track]:
        with self._lock:
            return list(self._tracks)

    def get(self, track_id) -> Optional[Track]:
        with self._lock:
            for track in self._tracks:
                if track.id == track_id:
                    return track
        return None

    def search(self, query: str) -> List[Track]:
        """Case-insensitive substring match on title or artist name."""
        needle = (query or "").strip().lower()
        with self._lock:
            if not needle:
                return list(self._tracks)
            return [
                t for t in self._tracks
                if needle in (t.title or "").lower() or needle in (t.artist_name or "").lower()
            ]

    def top_tracks(self, limit: int = 10) -> List[Track]:
        """Chart order: most played first."""
        with self._lock:
            ranked = sorted(self._tracks, key=lambda t: t.plays_count or 0, reverse=True)
        return ranked[:limit]

    def newest(self, limit: int = 5) -> List[Track]:
        with self._lock:
            ranked = sorted(self._tracks, key=lambda t: t.created_date or "", reverse=True)
        return ranked[:limit]

    def record_play(self, track_id):
        """
        Bump ``plays_count`` locally and report the play.
        Returns a Future[SyncOutcome], or None when the track is not cached.
        """
        with self._lock:
            track = self.get(track_id)
            if track is None:
                logger.debug("record_play: track %s not in this list", track_id)
                return None

            def apply():
                track.plays_count = (track.plays_count or 0) + 1
                self._notify_change()

            def revert():
                track.plays_count = max(0, track.plays_count - 1)
                self._notify_change()

            return self._sync.submit(Mutation(
                key=("play", track_id),
                apply=apply,
                remote=lambda: self._context.api.record_play(track_id),
                revert=revert,
                description=f"Record play {track_id}",
            ))

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
                logger.error("Error in track list change callback: %s", e)
