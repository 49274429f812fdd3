# tests/test_kv_store.py

"""Tests for the JSON key-value stores."""

import tempfile
import unittest
from pathlib import Path

from deal_tracker.config.settings import Settings
from deal_tracker.storage.kv_store import JsonFileStore, MemoryStore


class TestMemoryStore(unittest.TestCase):
    """Defaults for missing, corrupt and mistyped data."""

    def setUp(self) -> None:
        self.store = MemoryStore()

    def test_round_trip(self) -> None:
        self.store.set_json("watchlist", [{"id": "w1"}])
        self.assertEqual(self.store.get_json("watchlist", []), [{"id": "w1"}])

    def test_missing_key_returns_default(self) -> None:
        self.assertEqual(self.store.get_json("nothing", {}), {})
        self.assertIsNone(self.store.get_json("nothing"))

    def test_corrupt_json_returns_default(self) -> None:
        self.store.set_raw("alerts", "{not json")
        with self.assertLogs("deal_tracker.storage", level="WARNING"):
            self.assertEqual(self.store.get_json("alerts", []), [])

    def test_wrong_type_returns_default(self) -> None:
        """A dict stored where a list is expected reads as the default."""
        self.store.set_json("alerts", {"id": "a1"})
        self.assertEqual(self.store.get_json("alerts", []), [])

    def test_no_default_returns_any_type(self) -> None:
        self.store.set_json("lastDealCheck", "2026-03-01T00:00:00")
        self.assertEqual(
            self.store.get_json("lastDealCheck"), "2026-03-01T00:00:00"
        )


class TestJsonFileStore(unittest.TestCase):
    """One JSON file per key."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name) / "state"
        self.store = JsonFileStore(self.directory)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_directory_is_created(self) -> None:
        self.assertTrue(self.directory.is_dir())

    def test_writes_key_file(self) -> None:
        self.store.set_json("priceAlerts", [1, 2])
        self.assertTrue((self.directory / "priceAlerts.json").exists())
        self.assertEqual(
            JsonFileStore(self.directory).get_json("priceAlerts", []), [1, 2]
        )

    def test_corrupt_file_returns_default(self) -> None:
        (self.directory / "softwareWatchlist.json").write_text(
            "[{", encoding="utf-8"
        )
        self.assertEqual(self.store.get_json("softwareWatchlist", []), [])

    def test_invalid_utf8_returns_default(self) -> None:
        (self.directory / "softwareWatchlist.json").write_bytes(b"[\xff\xfe]")
        self.assertEqual(self.store.get_json("softwareWatchlist", []), [])

    def test_default_directory_from_settings(self) -> None:
        store = JsonFileStore()
        self.assertEqual(store.directory, Settings.STATE_DIR)
        self.assertTrue(store.directory.is_dir())


if __name__ == "__main__":
    unittest.main()
