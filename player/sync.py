"""
Optimistic list synchronization.

A mutation is applied to the local list immediately, then its remote call is
queued on a single-writer lane keyed by entity (e.g. ``("favorite", 7)``).
Lanes run strictly in submission order on a worker pool; different keys run
independently. When a remote call fails, that mutation and everything still
queued behind it on the lane are reverted newest first and the error is
reported through the notifier.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Hashable, Optional, Tuple

from shared.errors import ApiError, SoundstageError

logger = logging.getLogger(__name__)


class SupersededError(SoundstageError):
    """A queued mutation was dropped because an earlier one on its lane failed."""


@dataclass
class SyncOutcome:
    ok: bool
    value: Any = None
    error: Optional[BaseException] = None


def _noop(*_args) -> None:
    return None


class Mutation:
    """
    One optimistic change.

    apply/revert/reconcile run under the synchronizer lock; remote runs on a
    worker thread without it.
    """

    def __init__(
        self,
        key: Hashable,
        apply: Callable[[], None],
        remote: Callable[[], Any],
        revert: Callable[[], None],
        reconcile: Optional[Callable[[Any], None]] = None,
        description: str = "",
    ):
        self.key = key
        self.apply = apply
        self.remote = remote
        self.revert = revert
        self.reconcile = reconcile or _noop
        self.description = description or str(key)

    def __repr__(self):
        return f"Mutation({self.description!r})"


class OptimisticSynchronizer:
    """Runs mutations; the lock is shared with the list stores built on it."""

    def __init__(self, notifier=None, max_workers: int = 4, executor=None):
        self.lock = threading.RLock()
        self._notifier = notifier
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sync")
        self._lanes: Dict[Hashable, Deque[Tuple[Mutation, Future]]] = {}

    def submit(self, mutation: Mutation) -> Future:
        """Apply locally now and queue the remote call. The future never raises."""
        future: Future = Future()
        with self.lock:
            mutation.apply()
            lane = self._lanes.get(mutation.key)
            start = lane is None
            if start:
                lane = deque()
                self._lanes[mutation.key] = lane
            lane.append((mutation, future))
        if start:
            self._executor.submit(self._drain, mutation.key)
        return future

    def pending(self, key: Hashable) -> int:
        """Number of mutations queued or in flight for ``key``."""
        with self.lock:
            lane = self._lanes.get(key)
            return len(lane) if lane else 0

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _drain(self, key: Hashable) -> None:
        while True:
            with self.lock:
                lane = self._lanes.get(key)
                if not lane:
                    self._lanes.pop(key, None)
                    return
                mutation, future = lane[0]

            try:
                value = mutation.remote()
            except Exception as e:
                self._fail(key, e)
                continue

            with self.lock:
                try:
                    mutation.reconcile(value)
                except Exception:
                    logger.exception("Reconcile failed for %r", mutation)
                lane.popleft()
            future.set_result(SyncOutcome(ok=True, value=value))

    def _fail(self, key: Hashable, error: Exception) -> None:
        with self.lock:
            lane = self._lanes[key]
            entries = list(lane)
            lane.clear()
            for mutation, _ in reversed(entries):
                try:
                    mutation.revert()
                except Exception:
                    logger.exception("Revert failed for %r", mutation)

        failed, first_future = entries[0]
        if isinstance(error, ApiError):
            logger.warning("%s failed: %s", failed.description, error)
        else:
            logger.exception("%s failed", failed.description, exc_info=error)
        if self._notifier is not None:
            self._notifier.error(str(error) or failed.description)

        first_future.set_result(SyncOutcome(ok=False, error=error))
        superseded = SupersededError(f"Dropped after {failed.description} failed")
        for mutation, future in entries[1:]:
            logger.info("Dropping %r", mutation)
            future.set_result(SyncOutcome(ok=False, error=superseded))
