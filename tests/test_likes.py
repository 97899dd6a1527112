import unittest

from shared.errors import ApiError
from shared.models import Like
from player.likes import TrackLikes
from player.sync import OptimisticSynchronizer

from fakes import WAIT, make_context, make_track, make_user


class TestTrackLikes(unittest.TestCase):
    def setUp(self):
        self.context = make_context(user=make_user(1))
        self.sync = OptimisticSynchronizer(notifier=self.context.notifier)
        self.track = make_track(5, likes_count=2)

    def tearDown(self):
        self.sync.shutdown()

    def test_like(self):
        self.context.api.like_track.return_value = {"id": 77}
        likes = TrackLikes(self.context, self.sync, self.track)
        future = likes.toggle()
        self.assertTrue(likes.is_liked)
        self.assertEqual(self.track.likes_count, 3)
        self.assertTrue(future.result(WAIT).ok)
        self.assertEqual(likes.get_all()[0].id, 77)

    def test_unlike(self):
        likes = TrackLikes(self.context, self.sync, self.track, [Like(track_id=5, user_id=1, id=3)])
        likes.toggle().result(WAIT)
        self.assertFalse(likes.is_liked)
        self.assertEqual(self.track.likes_count, 1)
        self.context.api.unlike_track.assert_called_once_with(5)

    def test_failed_unlike_restores(self):
        self.context.api.unlike_track.side_effect = ApiError("nope")
        own = Like(track_id=5, user_id=1, id=3)
        likes = TrackLikes(self.context, self.sync, self.track, [Like(track_id=5, user_id=2, id=2), own])
        self.assertFalse(likes.toggle().result(WAIT).ok)
        self.assertEqual(likes.get_all()[1], own)
        self.assertEqual(self.track.likes_count, 2)

    def test_failed_like_restores_count(self):
        self.context.api.like_track.side_effect = ApiError("nope")
        likes = TrackLikes(self.context, self.sync, self.track)
        likes.toggle().result(WAIT)
        self.assertFalse(likes.is_liked)
        self.assertEqual(self.track.likes_count, 2)

    def test_requires_user(self):
        self.context.user = None
        likes = TrackLikes(self.context, self.sync, self.track)
        self.assertIsNone(likes.toggle())
        self.context.notifier.info.assert_called_once()
        self.context.api.like_track.assert_not_called()


if __name__ == '__main__':
    unittest.main()
