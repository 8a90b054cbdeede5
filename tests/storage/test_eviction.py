# tests/storage/test_eviction.py
"""Tests for oldest-first eviction selection."""

from parlaypro.storage import DEFAULT_EVICTION_BATCH, CacheEntry, select_oldest
from parlaypro.storage.eviction import stored_timestamp


def _stored(**timestamps):
    return {key: CacheEntry(key, ts, {"v": key}).encode() for key, ts in timestamps.items()}


class TestStoredTimestamp:

    def test_valid_entry(self):
        assert stored_timestamp("k", CacheEntry("k", 99, 1).encode()) == 99

    def test_missing_is_zero(self):
        assert stored_timestamp("k", None) == 0

    def test_corrupt_is_zero(self):
        assert stored_timestamp("k", "%%%") == 0
        assert stored_timestamp("k", '{"payload": 1}') == 0


class TestSelectOldest:

    def test_default_batch_is_five(self):
        assert DEFAULT_EVICTION_BATCH == 5

    def test_picks_smallest_timestamps(self):
        stored = _stored(a=50, b=10, c=40, d=20, e=70, f=30, g=60)
        assert select_oldest(stored) == ["b", "d", "f", "c", "a"]

    def test_fewer_entries_than_batch(self):
        stored = _stored(a=2, b=1)
        assert select_oldest(stored, 5) == ["b", "a"]

    def test_corrupt_first(self):
        stored = _stored(a=1, b=2)
        stored["junk"] = "not json"
        assert select_oldest(stored, 2) == ["junk", "a"]

    def test_ties_keep_order(self):
        stored = _stored(x=5, y=5, z=5)
        assert select_oldest(stored, 2) == ["x", "y"]

    def test_non_positive_count(self):
        assert select_oldest(_stored(a=1), 0) == []
        assert select_oldest(_stored(a=1), -3) == []

    def test_empty(self):
        assert select_oldest({}) == []
