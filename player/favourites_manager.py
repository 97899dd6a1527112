"""
Favourites for the signed-in user.
Cached copy of ``GET /api/favorites`` kept in step through optimistic toggles.
"""

import logging
from typing import Callable, List, Optional

from shared.models import Favorite
from player.sync import Mutation, OptimisticSynchronizer

logger = logging.getLogger(__name__)


class FavouritesManager:
    """
    Favourite relations of one user, identified by track id.

    Whether a toggle adds or removes is decided from the cached list at call
    time, so a second toggle issued before the first resolves is queued
    behind it as the opposite operation.
    """

    def __init__(self, context, synchronizer: OptimisticSynchronizer):
        self._context = context
        self._sync = synchronizer
        self._lock = synchronizer.lock
        self._favourites: List[Favorite] = []
        self._on_change_callbacks: List[Callable[[], None]] = []

    def load(self) -> List[Favorite]:
        """Replace the cache with the server's list."""
        data = self._context.api.get_favorites()
        with self._lock:
            self._favourites = [Favorite.from_dict(f) for f in data]
            logger.debug("Loaded %d favourites", len(self._favourites))
            self._notify_change()
            return list(self._favourites)

    def is_favourite(self, track_id) -> bool:
        with self._lock:
            return self._find(track_id) is not None

    def get_all(self) -> List[Favorite]:
        with self._lock:
            return list(self._favourites)

    def track_ids(self) -> List:
        with self._lock:
            return [f.track_id for f in self._favourites]

    def size(self) -> int:
        with self._lock:
            return len(self._favourites)

    def toggle(self, track_id):
        """
        Add or remove ``track_id``. Returns a Future[SyncOutcome]; the local
        list already reflects the change when this returns.
        """
        with self._lock:
            existing = self._find(track_id)
            if existing is None:
                mutation = self._add_mutation(track_id)
            else:
                mutation = self._remove_mutation(existing)
            return self._sync.submit(mutation)

    def _find(self, track_id) -> Optional[Favorite]:
        for favourite in self._favourites:
            if favourite.track_id == track_id:
                return favourite
        return None

    def _add_mutation(self, track_id) -> Mutation:
        entry = Favorite(track_id=track_id, user_id=self._context.user_id)

        def apply():
            self._favourites.append(entry)
            self._notify_change()

        def revert():
            if entry in self._favourites:
                self._favourites.remove(entry)
                self._notify_change()

        def reconcile(result):
            # Swap the placeholder id for the server-assigned one
            if isinstance(result, dict) and result.get("id") is not None:
                entry.id = result["id"]
                if result.get("user_id") is not None:
                    entry.user_id = result["user_id"]

        return Mutation(
            key=("favorite", track_id),
            apply=apply,
            remote=lambda: self._context.api.add_favorite(track_id),
            revert=revert,
            reconcile=reconcile,
            description=f"Add favourite {track_id}",
        )

    def _remove_mutation(self, entry: Favorite) -> Mutation:
        position = {}

        def apply():
            position["index"] = self._favourites.index(entry)
            self._favourites.remove(entry)
            self._notify_change()

        def revert():
            if entry not in self._favourites:
                index = min(position.get("index", len(self._favourites)), len(self._favourites))
                self._favourites.insert(index, entry)
                self._notify_change()

        return Mutation(
            key=("favorite", entry.track_id),
            apply=apply,
            remote=lambda: self._context.api.remove_favorite(entry.track_id),
            revert=revert,
            description=f"Remove favourite {entry.track_id}",
        )

    def add_change_callback(self, callback: Callable[[], None]) -> None:
        """Register a callback to be called when favourites change."""
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
                logger.error("Error in favourites change callback: %s", e)
