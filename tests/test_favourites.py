import unittest

from shared.errors import ApiError
from player.favourites_manager import FavouritesManager
from player.sync import OptimisticSynchronizer

from fakes import WAIT, Gate, make_context, make_user


class TestFavouritesManager(unittest.TestCase):
    def setUp(self):
        self.context = make_context(user=make_user(1))
        self.sync = OptimisticSynchronizer(notifier=self.context.notifier)
        self.favourites = FavouritesManager(self.context, self.sync)

    def tearDown(self):
        self.sync.shutdown()

    def test_load(self):
        self.context.api.get_favorites.return_value = [{"id": 1, "track_id": 3, "user_id": 1}]
        self.favourites.load()
        self.assertTrue(self.favourites.is_favourite(3))
        self.assertEqual(self.favourites.size(), 1)

    def test_add_is_visible_before_server_answers(self):
        gate = Gate()
        self.context.api.add_favorite.side_effect = gate.hold(result={"id": 55, "track_id": 7, "user_id": 1})
        future = self.favourites.toggle(7)

        self.assertTrue(self.favourites.is_favourite(7))
        self.assertTrue(self.favourites.get_all()[0].is_local)

        gate.release()
        self.assertTrue(future.result(WAIT).ok)
        entry = self.favourites.get_all()[0]
        self.assertEqual(entry.id, 55)
        self.assertFalse(entry.is_local)

    def test_failed_add_rolls_back_and_notifies(self):
        gate = Gate()
        self.context.api.add_favorite.side_effect = gate.hold(error=ApiError("Server unavailable"))
        future = self.favourites.toggle(7)
        self.assertTrue(self.favourites.is_favourite(7))

        gate.release()
        self.assertFalse(future.result(WAIT).ok)
        self.assertFalse(self.favourites.is_favourite(7))
        self.context.notifier.error.assert_called_once_with("Server unavailable")

    def test_failed_remove_restores_position(self):
        self.context.api.get_favorites.return_value = [
            {"id": 1, "track_id": 10}, {"id": 2, "track_id": 20}, {"id": 3, "track_id": 30},
        ]
        self.favourites.load()
        self.context.api.remove_favorite.side_effect = ApiError("nope")

        self.favourites.toggle(20).result(WAIT)
        self.assertEqual(self.favourites.track_ids(), [10, 20, 30])

    def test_double_toggle_ends_where_it_started(self):
        gate = Gate()
        self.context.api.add_favorite.side_effect = gate.hold(result={"id": 8})
        first = self.favourites.toggle(7)
        second = self.favourites.toggle(7)
        self.assertFalse(self.favourites.is_favourite(7))

        gate.release()
        self.assertTrue(first.result(WAIT).ok)
        self.assertTrue(second.result(WAIT).ok)
        self.assertFalse(self.favourites.is_favourite(7))
        self.context.api.add_favorite.assert_called_once_with(7)
        self.context.api.remove_favorite.assert_called_once_with(7)

    def test_toggle_again_after_resolution_removes_entry(self):
        self.context.api.add_favorite.return_value = {"id": 8, "track_id": 7}
        self.favourites.toggle(7).result(WAIT)
        self.assertEqual([f.track_id for f in self.favourites.get_all()], [7])

        self.favourites.toggle(7).result(WAIT)
        self.assertEqual(self.favourites.get_all(), [])

    def test_double_toggle_with_failed_add_restores_original(self):
        gate = Gate()
        self.context.api.add_favorite.side_effect = gate.hold(error=ApiError("down"))
        first = self.favourites.toggle(7)
        second = self.favourites.toggle(7)

        gate.release()
        first.result(WAIT)
        second.result(WAIT)
        self.assertFalse(self.favourites.is_favourite(7))
        self.context.api.remove_favorite.assert_not_called()

    def test_change_callbacks(self):
        calls = []
        self.favourites.add_change_callback(lambda: calls.append(1))
        self.context.api.add_favorite.return_value = {"id": 1}
        self.favourites.toggle(4).result(WAIT)
        self.assertGreaterEqual(len(calls), 1)


if __name__ == '__main__':
    unittest.main()
