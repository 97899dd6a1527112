"""Likes on a single track, with the public counter adjusted optimistically."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from shared.models import Like, Track
from player.sync import Mutation, OptimisticSynchronizer

logger = logging.getLogger(__name__)


class TrackLikes:
    """Like list of one track plus its ``likes_count``."""

    def __init__(self, context, synchronizer: OptimisticSynchronizer, track: Track, likes: Optional[List[Like]] = None):
        self._context = context
        self._sync = synchronizer
        self._lock = synchronizer.lock
        self.track = track
        self._likes: List[Like] = list(likes or [])

    def load(self) -> List[Like]:
        data = self._context.api.get_track_likes(self.track.id)
        with self._lock:
            self._likes = [Like.from_dict(item) for item in data]
            return list(self._likes)

    def get_all(self) -> List[Like]:
        with self._lock:
            return list(self._likes)

    @property
    def is_liked(self) -> bool:
        with self._lock:
            return self._own_like() is not None

    def _own_like(self) -> Optional[Like]:
        user_id = self._context.user_id
        if user_id is None:
            return None
        for like in self._likes:
            if like.user_id == user_id:
                return like
        return None

    def toggle(self):
        """Like or unlike for the signed-in user. None when nobody is signed in."""
        if self._context.user_id is None:
            self._context.notifier.info("Sign in to like tracks")
            return None
        with self._lock:
            existing = self._own_like()
            mutation = self._unlike_mutation(existing) if existing else self._like_mutation()
            return self._sync.submit(mutation)

    def _like_mutation(self) -> Mutation:
        track = self.track
        entry = Like(
            track_id=track.id,
            user_id=self._context.user_id,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

        def apply():
            self._likes.append(entry)
            track.likes_count = (track.likes_count or 0) + 1

        def revert():
            if entry in self._likes:
                self._likes.remove(entry)
            track.likes_count = max(0, track.likes_count - 1)

        def reconcile(result):
            if isinstance(result, dict) and result.get("id") is not None:
                entry.id = result["id"]

        return Mutation(
            key=("like", track.id),
            apply=apply,
            remote=lambda: self._context.api.like_track(track.id),
            revert=revert,
            reconcile=reconcile,
            description=f"Like track {track.id}",
        )

    def _unlike_mutation(self, entry: Like) -> Mutation:
        track = self.track
        position = {}

        def apply():
            position["index"] = self._likes.index(entry)
            self._likes.remove(entry)
            position["counted"] = track.likes_count > 0
            track.likes_count = max(0, track.likes_count - 1)

        def revert():
            if entry not in self._likes:
                self._likes.insert(min(position["index"], len(self._likes)), entry)
            if position["counted"]:
                track.likes_count += 1

        return Mutation(
            key=("like", track.id),
            apply=apply,
            remote=lambda: self._context.api.unlike_track(track.id),
            revert=revert,
            description=f"Unlike track {track.id}",
        )
