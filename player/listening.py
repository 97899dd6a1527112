"""
Wires the track list, favourites and queue to one playback controller.
Screens hand their own ordering to ``use_queue`` and call ``play``.
"""

import logging
from typing import List, Optional

from shared.models import Track
from player.controller import PlaybackController
from player.favourites_manager import FavouritesManager
from player.library import TrackList
from player.queue_manager import QueueManager
from player.sync import OptimisticSynchronizer

logger = logging.getLogger(__name__)


class ListeningSession:
    """Everything a listener screen needs, built from one ClientContext."""

    def __init__(self, context, transport, synchronizer: Optional[OptimisticSynchronizer] = None):
        self.context = context
        self.synchronizer = synchronizer or OptimisticSynchronizer(
            notifier=context.notifier,
            max_workers=context.settings.sync_workers,
        )
        self.tracks = TrackList(context, self.synchronizer)
        self.favourites = FavouritesManager(context, self.synchronizer)
        self.queue = QueueManager()
        self.controller = PlaybackController(context, transport, self.favourites, self.queue)
        self._counted_track_id = None
        self.controller.add_state_listener(self._count_play)

    def use_queue(self, tracks: List[Track]) -> None:
        self.queue.replace(tracks)

    def play(self, track: Track):
        """
        Select ``track``. Every switch to a new track counts one play,
        including queue advances; re-selecting the current track does not.
        Returns the autoplay future.
        """
        return self.controller.select_track(track)

    def _count_play(self, snapshot) -> None:
        track_id = snapshot.track.id if snapshot.track is not None else None
        if track_id == self._counted_track_id:
            return
        self._counted_track_id = track_id
        if track_id is not None:
            self.tracks.record_play(track_id)

    def favourite_tracks(self) -> List[Track]:
        """Cached tracks that are in the favourites list, in favourites order."""
        tracks = []
        for track_id in self.favourites.track_ids():
            track = self.tracks.get(track_id)
            if track is not None:
                tracks.append(track)
        return tracks

    def close(self) -> None:
        self.controller.stop()
        self.synchronizer.shutdown(wait=True)
