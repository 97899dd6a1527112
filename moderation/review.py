"""
Pending moderation queue.

Decisions are optimistic: the item leaves the local list immediately and
comes back at its old position if the backend refuses.
"""

import logging
from typing import Callable, List, Optional

from shared.models import ModerationItem, TrackStatus, moderation_item_from_dict
from shared.validation import validate_reject_reason
from player.sync import Mutation, OptimisticSynchronizer

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all",) + tuple(s.value for s in TrackStatus)


class ModerationQueue:
    """Cached pending list plus approve/reject."""

    def __init__(self, context, synchronizer: OptimisticSynchronizer, items: Optional[List[ModerationItem]] = None):
        self._context = context
        self._sync = synchronizer
        self._lock = synchronizer.lock
        self._items: List[ModerationItem] = list(items or [])
        self._on_change_callbacks: List[Callable[[], None]] = []

    def load(self) -> List[ModerationItem]:
        data = self._context.api.get_pending()
        items = []
        for raw in data:
            try:
                items.append(moderation_item_from_dict(raw))
            except ValueError as e:
                logger.warning("Skipping moderation item %s: %s", raw.get("id"), e)
        with self._lock:
            self._items = items
            self._notify_change()
            return list(self._items)

    @property
    def items(self) -> List[ModerationItem]:
        with self._lock:
            return list(self._items)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for item in self._items if item.status == TrackStatus.PENDING)

    def filter(self, status: str = "all", search: str = "", variant: Optional[str] = None) -> List[ModerationItem]:
        """
        Items matching ``status`` ("all" or a status value), a case-insensitive
        ``search`` over title and artist name, and optionally one ``variant``.
        Never changes the queue.
        """
        if status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {status}")
        needle = (search or "").strip().lower()
        with self._lock:
            items = list(self._items)

        result = []
        for item in items:
            if status != "all" and item.status.value != status:
                continue
            if variant is not None and item.variant != variant:
                continue
            if needle:
                haystack = f"{item.display_title} {item.artist_name}".lower()
                if needle not in haystack:
                    continue
            result.append(item)
        return result

    def approve(self, item_id, variant: Optional[str] = None):
        """Approve ``item_id``. Returns a Future[SyncOutcome]."""
        with self._lock:
            item = self._find(item_id, variant)
            api = self._context.api
            return self._sync.submit(self._decision(
                item,
                remote=lambda: api.approve(item.id_field, item.id),
                description=f"Approve {item.variant} {item.id}",
            ))

    def reject(self, item_id, reason: str, variant: Optional[str] = None):
        """
        Reject ``item_id`` with a reason. An empty reason raises
        ValidationError before anything changes.
        """
        reason = validate_reject_reason(reason)
        with self._lock:
            item = self._find(item_id, variant)
            api = self._context.api
            return self._sync.submit(self._decision(
                item,
                remote=lambda: api.reject(item.id_field, item.id, reason),
                description=f"Reject {item.variant} {item.id}",
            ))

    def _find(self, item_id, variant: Optional[str]) -> ModerationItem:
        for item in self._items:
            if item.id == item_id and (variant is None or item.variant == variant):
                return item
        raise KeyError(item_id)

    def _decision(self, item: ModerationItem, remote, description: str) -> Mutation:
        position = {}

        def apply():
            position["index"] = self._items.index(item)
            self._items.remove(item)
            self._notify_change()

        def revert():
            if item not in self._items:
                self._items.insert(min(position["index"], len(self._items)), item)
                self._notify_change()

        return Mutation(
            key=("moderation", item.variant, item.id),
            apply=apply,
            remote=remote,
            revert=revert,
            description=description,
        )

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
                logger.error("Error in moderation change callback: %s", e)
