import time

from ledger_server.cache.ttl_cache import TTLCache


def test_invalidate_by_tag_and_by_key() -> None:
    cache = TTLCache()
    cache.set("kpi:snapshot", 1, tags=("kpi", "portfolio"))
    cache.set("performance:series", 2, tags=("performance",))
    cache.set("portfolio", 3)
    cache.set("other", 4, tags=("misc",))

    assert cache.invalidate(["portfolio"]) == 2
    assert cache.get("kpi:snapshot") is None
    assert cache.get("portfolio") is None
    assert cache.get("performance:series") == 2
    assert cache.get("other") == 4


def test_expired_entries_are_dropped(monkeypatch) -> None:
    cache = TTLCache(default_ttl_seconds=5)
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now)
    cache.set("k", "v")
    assert cache.get("k") == "v"
    monkeypatch.setattr(time, "time", lambda: now + 6)
    assert cache.get("k") is None


def test_clear_empties_cache() -> None:
    cache = TTLCache()
    cache.set("a", 1)
    cache.clear()
    assert cache.get("a") is None
    assert cache.invalidate(["a"]) == 0
