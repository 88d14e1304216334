from app.infra.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(30, clock=clock)
    cache.set("k", "v")

    clock.now += 29
    assert cache.get("k") == "v"

    clock.now += 1
    assert cache.get("k") is None
    assert "k" not in cache


def test_cached_none_is_distinguishable_from_missing():
    cache = TTLCache(30, clock=FakeClock())
    cache.set("admin", None)

    assert "admin" in cache
    assert "other" not in cache
    assert cache.get("other", "fallback") == "fallback"


def test_invalidate_single_key_and_all():
    cache = TTLCache(30, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert "a" not in cache
    assert cache.get("b") == 2

    cache.invalidate()
    assert "b" not in cache
