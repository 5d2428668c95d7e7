"""Unit tests for the dashboard TTL cache."""
from __future__ import annotations

from datetime import datetime, timezone

from balance_aggregator.models import AssetDashboard
from balance_aggregator.services.cache import BalanceCache

from conftest import ADDRESS, FakeClock


def _dashboard(total: str = "1.00") -> AssetDashboard:
    return AssetDashboard(
        total_value_usd=total,
        tokens=(),
        nfts=(),
        defi_positions=(),
        pending_transactions=(),
        last_updated=datetime.now(timezone.utc),
    )


class TestMakeKey:
    def test_order_and_case_insensitive(self) -> None:
        a = BalanceCache.make_key(ADDRESS, [137, 1])
        b = BalanceCache.make_key(ADDRESS.lower(), [1, 137, 1])
        assert a == b == f"{ADDRESS.lower()}-1,137"


class TestFreshness:
    def test_hit_within_ttl(self, cache: BalanceCache, clock: FakeClock) -> None:
        dashboard = _dashboard()
        cache.set("k", dashboard)
        clock.advance(29.9)
        assert cache.get("k") == dashboard

    def test_miss_after_ttl(self, cache: BalanceCache, clock: FakeClock) -> None:
        cache.set("k", _dashboard())
        clock.advance(30.0)
        assert cache.get("k") is None

    def test_unknown_key(self, cache: BalanceCache) -> None:
        assert cache.get("nope") is None

    def test_set_overwrites_and_restarts_ttl(self, cache: BalanceCache, clock: FakeClock) -> None:
        cache.set("k", _dashboard("1.00"))
        clock.advance(20)
        cache.set("k", _dashboard("2.00"))
        clock.advance(20)
        entry = cache.get("k")
        assert entry is not None
        assert entry.total_value_usd == "2.00"

    def test_zero_ttl_never_hits(self, clock: FakeClock) -> None:
        cache = BalanceCache(ttl_seconds=0, clock=clock)
        cache.set("k", _dashboard())
        assert cache.get("k") is None


class TestInvalidation:
    def test_invalidate_removes_only_that_address(self, cache: BalanceCache) -> None:
        other = "0x" + "2" * 40
        cache.set(BalanceCache.make_key(ADDRESS, [1]), _dashboard())
        cache.set(BalanceCache.make_key(ADDRESS, [1, 137]), _dashboard())
        cache.set(BalanceCache.make_key(other, [1]), _dashboard())

        assert cache.invalidate(ADDRESS.upper().replace("0X", "0x")) == 2
        assert cache.get(BalanceCache.make_key(ADDRESS, [1])) is None
        assert cache.get(BalanceCache.make_key(other, [1])) is not None

    def test_invalidate_missing_address(self, cache: BalanceCache) -> None:
        assert cache.invalidate(ADDRESS) == 0

    def test_invalidate_all(self, cache: BalanceCache) -> None:
        cache.set("a-1", _dashboard())
        cache.set("b-1", _dashboard())
        cache.invalidate_all()
        assert len(cache) == 0

    def test_purge_expired(self, cache: BalanceCache, clock: FakeClock) -> None:
        cache.set("old-1", _dashboard())
        clock.advance(20)
        cache.set("new-1", _dashboard())
        clock.advance(15)
        assert cache.purge_expired() == 1
        assert len(cache) == 1
        assert cache.get("new-1") is not None


class TestEviction:
    def test_set_drops_stale_entries(self, cache: BalanceCache, clock: FakeClock) -> None:
        for i in range(1000):
            cache.set(BalanceCache.make_key(f"0x{i:040x}", [1]), _dashboard())
            clock.advance(60)
        assert len(cache) == 1

    def test_set_keeps_fresh_entries(self, cache: BalanceCache, clock: FakeClock) -> None:
        cache.set("a-1", _dashboard())
        clock.advance(10)
        cache.set("b-1", _dashboard())
        assert len(cache) == 2
        assert cache.get("a-1") is not None
