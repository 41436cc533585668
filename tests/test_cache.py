"""Tests for cryptokind.market.cache — TTL response cache."""

from cryptokind.market.cache import ResponseCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestResponseCache:
    def test_get_missing(self):
        assert ResponseCache().get("top50cryptos") is None

    def test_set_then_get(self):
        cache = ResponseCache(ttl=300, clock=FakeClock())
        cache.set("top50cryptos", [{"id": 1}])
        assert cache.get("top50cryptos") == [{"id": 1}]

    def test_expires_after_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl=300, clock=clock)
        cache.set("k", "v")

        clock.now += 299.9
        assert cache.get("k") == "v"

        clock.now += 0.1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_set_refreshes_expiry(self):
        clock = FakeClock()
        cache = ResponseCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.now += 8
        cache.set("k", 2)
        clock.now += 8
        assert cache.get("k") == 2

    def test_delete_and_clear(self):
        cache = ResponseCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0
