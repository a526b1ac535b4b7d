"""Unit tests for the operation cache."""

from unittest.mock import Mock

import pytest

from nak.services.operation_cache import CacheEntry, OperationCache

pytestmark = pytest.mark.unit


@pytest.fixture
def cache(fake_clock):
    return OperationCache(default_ttl=300, clock=fake_clock)


class TestCacheEntry:
    """Test TTL boundary."""

    def test_live_strictly_before_ttl(self):
        entry = CacheEntry(key="k", timestamp=100, value="v")

        assert entry.is_live(159, 60)
        assert not entry.is_live(160, 60)


class TestOperationCache:
    """Test memoization semantics."""

    def test_second_call_within_ttl_is_a_hit(self, cache, fake_clock):
        """Test get_or_execute runs the operation once within the TTL."""
        operation = Mock(return_value="x")

        assert cache.get_or_execute("tool_check", 60, operation) == ("x", True)
        fake_clock.advance(30)
        assert cache.get_or_execute("tool_check", 60, operation) == ("x", True)

        operation.assert_called_once()

    def test_entry_expires_at_ttl(self, cache, fake_clock):
        operation = Mock(side_effect=["x", "y"])

        cache.get_or_execute("tool_check", 60, operation)
        fake_clock.advance(60)
        result = cache.get_or_execute("tool_check", 60, operation)

        assert result == ("y", True)
        assert operation.call_count == 2

    def test_failed_operation_is_not_cached(self, cache):
        """Test that a raising operation reports failure and is retried next time."""
        operation = Mock(side_effect=[RuntimeError("tool missing"), "ok"])

        assert cache.get_or_execute("tool_check", 60, operation) == (None, False)
        assert "tool_check" not in cache
        assert cache.get_or_execute("tool_check", 60, operation) == ("ok", True)
        assert operation.call_count == 2

    def test_empty_result_counts_as_cached(self, cache):
        """Test that an empty value is a hit, not a miss."""
        operation = Mock(return_value="")

        cache.get_or_execute("tool_check", 60, operation)
        value, ok = cache.get_or_execute("tool_check", 60, operation)

        assert (value, ok) == ("", True)
        operation.assert_called_once()

    def test_arguments_are_forwarded(self, cache):
        operation = Mock(return_value=3)

        cache.get_or_execute("sum", None, operation, 1, 2, scale=1)

        operation.assert_called_once_with(1, 2, scale=1)

    def test_default_ttl_used_when_none(self, cache, fake_clock):
        operation = Mock(side_effect=["a", "b"])

        cache.get_or_execute("k", None, operation)
        fake_clock.advance(299)
        assert cache.get_or_execute("k", None, operation) == ("a", True)
        fake_clock.advance(1)
        assert cache.get_or_execute("k", None, operation) == ("b", True)

    def test_lookup(self, cache):
        assert cache.lookup("missing") == (None, False)
        cache.set("present", None)
        assert cache.lookup("present") == (None, True)

    def test_invalidate_and_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert len(cache) == 1
        assert cache.clear() == 1
        assert len(cache) == 0

    def test_stats(self, cache):
        operation = Mock(return_value=1)
        failing = Mock(side_effect=OSError("boom"))

        cache.get_or_execute("a", 60, operation)
        cache.get_or_execute("a", 60, operation)
        cache.get_or_execute("b", 60, failing)

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["failures"] == 1
        assert stats["entries"] == 1
        assert stats["default_ttl"] == 300
