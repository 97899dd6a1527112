import json
import tempfile
import unittest
from pathlib import Path

from shared.token_store import FileTokenStore, MemoryTokenStore


class TestTokenStore(unittest.TestCase):
    def test_memory_store(self):
        store = MemoryTokenStore({"token": "a"})
        self.assertEqual(store.get("token"), "a")
        store.remove("token")
        self.assertIsNone(store.get("token"))

    def test_file_store_persists(self):
        with tempfile.TemporaryDirectory() as tmp:
            FileTokenStore(Path(tmp) / "cfg").set("token", "secret")
            self.assertEqual(FileTokenStore(Path(tmp) / "cfg").get("token"), "secret")

            store = FileTokenStore(Path(tmp) / "cfg")
            store.remove("token")
            data = json.loads((Path(tmp) / "cfg" / "session.json").read_text())
            self.assertEqual(data, {})

    def test_corrupt_file_starts_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "session.json").write_text("{not json")
            store = FileTokenStore(Path(tmp))
            self.assertIsNone(store.get("token"))
            store.set("token", "new")
            self.assertEqual(FileTokenStore(Path(tmp)).get("token"), "new")


if __name__ == '__main__':
    unittest.main()
