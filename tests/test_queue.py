import unittest

from player.queue_manager import QueueManager

from fakes import make_track


class TestQueueManager(unittest.TestCase):
    def setUp(self):
        self.a, self.b, self.c = make_track(1), make_track(2), make_track(3)
        self.queue = QueueManager([self.a, self.b, self.c])

    def test_next_after(self):
        self.assertEqual(self.queue.next_after(self.a).id, 2)
        self.assertIsNone(self.queue.next_after(self.c))
        self.assertEqual(self.queue.next_after(None).id, 1)
        self.assertEqual(self.queue.next_after(make_track(99)).id, 1)

    def test_previous_before(self):
        self.assertEqual(self.queue.previous_before(self.c).id, 2)
        self.assertIsNone(self.queue.previous_before(self.a))

    def test_repeat_all_wraps(self):
        self.queue.set_repeat_mode("all")
        self.assertEqual(self.queue.next_after(self.c).id, 1)
        self.assertEqual(self.queue.previous_before(self.a).id, 3)

    def test_repeat_one_only_on_auto_advance(self):
        self.queue.set_repeat_mode("one")
        self.assertEqual(self.queue.next_after(self.b, auto=True).id, 2)
        self.assertEqual(self.queue.next_after(self.b).id, 3)
        self.assertIsNone(self.queue.next_after(self.c))

    def test_unknown_repeat_mode(self):
        with self.assertRaises(ValueError):
            self.queue.set_repeat_mode("twice")

    def test_empty_queue(self):
        queue = QueueManager()
        self.assertTrue(queue.is_empty())
        self.assertIsNone(queue.next_after(self.a))
        self.assertIsNone(queue.previous_before(self.a))

    def test_edit_operations(self):
        self.queue.add(make_track(4))
        self.assertTrue(self.queue.move(3, 0))
        self.assertEqual([t.id for t in self.queue.get_all()], [4, 1, 2, 3])
        self.assertTrue(self.queue.remove(0))
        self.assertFalse(self.queue.remove(10))
        self.queue.replace([self.c])
        self.assertEqual(self.queue.size(), 1)


if __name__ == '__main__':
    unittest.main()
