"""Tests for fast tier backends."""

from unittest.mock import MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from plugin_filters.storage.cache.fast_tiers import (
    MemoryFastTier,
    NullFastTier,
    RedisFastTier,
    create_fast_tier,
)


class TestMemoryFastTier:
    """Tests for MemoryFastTier."""

    def test_set_get_and_expiry(self, clock) -> None:
        """Test entries expire at their TTL."""
        tier = MemoryFastTier(clock)
        tier.set("meta:a", b"1", ttl=10)

        assert tier.get("meta:a") == b"1"
        clock.advance(10)
        assert tier.get("meta:a") is None
        assert len(tier) == 0

    def test_get_many(self, clock) -> None:
        """Test only present keys are returned."""
        tier = MemoryFastTier(clock)
        tier.set("meta:a", b"1", ttl=10)
        assert tier.get_many(["meta:a", "meta:b"]) == {"meta:a": b"1"}

    def test_clear_scope(self, clock) -> None:
        """Test clearing one scope keeps the others."""
        tier = MemoryFastTier(clock)
        tier.set("meta:a", b"1", ttl=10)
        tier.set("scores:a", b"2", ttl=10)

        tier.clear("meta")
        assert tier.get("meta:a") is None
        assert tier.get("scores:a") == b"2"

        tier.clear()
        assert len(tier) == 0


class TestRedisFastTier:
    """Tests for RedisFastTier with a mocked client."""

    def test_prefixes_keys(self) -> None:
        """Test keys are namespaced with the prefix."""
        client = MagicMock()
        client.get.return_value = b"1"
        tier = RedisFastTier(client, prefix="test:")

        assert tier.get("meta:a") == b"1"
        client.get.assert_called_once_with("test:meta:a")

        tier.set("meta:a", b"1", ttl=30)
        client.setex.assert_called_once_with("test:meta:a", 30, b"1")

    def test_get_many_uses_mget(self) -> None:
        """Test batched lookup maps results back to keys."""
        client = MagicMock()
        client.mget.return_value = [b"1", None]
        tier = RedisFastTier(client)

        assert tier.get_many(["meta:a", "meta:b"]) == {"meta:a": b"1"}
        client.mget.assert_called_once()

    def test_errors_are_misses(self) -> None:
        """Test Redis failures degrade to misses and no-ops."""
        client = MagicMock()
        client.get.side_effect = RedisConnectionError("down")
        client.mget.side_effect = RedisConnectionError("down")
        client.setex.side_effect = RedisConnectionError("down")
        client.delete.side_effect = RedisConnectionError("down")
        client.scan_iter.side_effect = RedisConnectionError("down")
        tier = RedisFastTier(client)

        assert tier.get("meta:a") is None
        assert tier.get_many(["meta:a"]) == {}
        tier.set("meta:a", b"1", ttl=10)
        tier.delete("meta:a")
        tier.clear("meta")

    def test_clear_scans_scope_pattern(self) -> None:
        """Test clear deletes keys matching the scope pattern."""
        client = MagicMock()
        client.scan_iter.return_value = iter([b"wppd:meta:a", b"wppd:meta:b"])
        tier = RedisFastTier(client)

        tier.clear("meta")

        client.scan_iter.assert_called_once_with(match="wppd:meta:*", count=500)
        client.delete.assert_called_once_with(b"wppd:meta:a", b"wppd:meta:b")


class TestCreateFastTier:
    """Tests for create_fast_tier."""

    def test_memory(self, clock) -> None:
        """Test memory kind."""
        assert isinstance(create_fast_tier("memory", clock=clock), MemoryFastTier)

    def test_none(self) -> None:
        """Test none kind."""
        assert isinstance(create_fast_tier("none"), NullFastTier)

    def test_redis_without_url(self) -> None:
        """Test redis without a URL disables the fast tier."""
        assert isinstance(create_fast_tier("redis", None), NullFastTier)

    def test_redis_unreachable(self) -> None:
        """Test a failed ping disables the fast tier."""
        client = MagicMock()
        client.ping.side_effect = RedisConnectionError("refused")
        with patch("plugin_filters.storage.cache.fast_tiers.redis.from_url", return_value=client):
            tier = create_fast_tier("redis", "redis://localhost:6379/0")
        assert isinstance(tier, NullFastTier)

    def test_redis_reachable(self) -> None:
        """Test a successful ping gives a Redis tier."""
        client = MagicMock()
        with patch("plugin_filters.storage.cache.fast_tiers.redis.from_url", return_value=client):
            tier = create_fast_tier("redis", "redis://localhost:6379/0")
        assert isinstance(tier, RedisFastTier)
        assert tier.client is client
