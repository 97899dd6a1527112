"""Test doubles shared by the test modules."""

import threading
from concurrent.futures import Future
from unittest.mock import MagicMock

from shared.config import ClientSettings
from shared.context import ClientContext
from shared.models import Track, User
from shared.token_store import MemoryTokenStore
from player.transport import MediaTransport

WAIT = 2.0


def make_context(user=None, api=None):
    return ClientContext(
        settings=ClientSettings(api_url="http://test/api", timeout=5),
        token_store=MemoryTokenStore(),
        api=api or MagicMock(),
        notifier=MagicMock(),
        user=user,
    )


def make_user(user_id=1, role="user"):
    return User(id=user_id, email=f"user{user_id}@example.com", role=role)


def make_track(track_id, **kwargs):
    kwargs.setdefault("title", f"Track {track_id}")
    kwargs.setdefault("artist_name", "Artist")
    kwargs.setdefault("audio_url", f"http://cdn/{track_id}.mp3")
    return Track(id=track_id, **kwargs)


class Gate:
    """Holds remote calls until released, so the optimistic state can be checked."""

    def __init__(self):
        self.entered = threading.Event()
        self._release = threading.Event()

    def hold(self, result=None, error=None):
        def call(*args, **kwargs):
            self.entered.set()
            if not self._release.wait(WAIT):
                raise AssertionError("gate was never released")
            if error is not None:
                raise error
            return result
        return call

    def release(self):
        self._release.set()


class FakeTransport(MediaTransport):
    """Transport whose play() futures are settled by the test."""

    def __init__(self, auto_play=False):
        super().__init__()
        self.auto_play = auto_play
        self.loaded = []
        self.play_futures = []
        self.seeks = []
        self.paused = 0
        self.stopped = 0
        self.applied_volume = None
        self._duration = 0.0

    def load(self, url):
        self.loaded.append(url)
        self._duration = 0.0

    def play(self):
        future = Future()
        self.play_futures.append(future)
        if self.auto_play:
            future.set_result(True)
        return future

    def pause(self):
        self.paused += 1

    def stop(self):
        self.stopped += 1
        self._duration = 0.0

    def _apply_seek(self, seconds):
        self.seeks.append(seconds)

    def _apply_volume(self, level):
        self.applied_volume = level

    @property
    def duration(self):
        return self._duration

    def set_duration(self, seconds):
        self._duration = seconds
        self.emit_duration_known(seconds)
