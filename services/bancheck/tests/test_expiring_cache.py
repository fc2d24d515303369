"""Tests for the in-memory ban cache."""

import threading

from bancheck.core.expiring_cache import ExpiringCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_within_ttl_returns_value():
    clock = FakeClock()
    cache: ExpiringCache[str, bool] = ExpiringCache(60, clock=clock)

    cache.set("123", True)
    clock.now += 59

    assert cache.get("123") == (True, True)


def test_entry_visible_until_exact_expiry():
    clock = FakeClock()
    cache: ExpiringCache[str, bool] = ExpiringCache(60, clock=clock)

    cache.set("123", False)
    clock.now += 60

    assert cache.get("123") == (False, True)


def test_expired_entry_is_missing_and_dropped():
    clock = FakeClock()
    cache: ExpiringCache[str, bool] = ExpiringCache(60, clock=clock)

    cache.set("123", True)
    clock.now += 61

    assert cache.get("123") == (None, False)
    assert len(cache) == 0

    cache.set("123", False)
    assert cache.get("123") == (False, True)


def test_set_resets_expiry():
    clock = FakeClock()
    cache: ExpiringCache[str, bool] = ExpiringCache(10, clock=clock)

    cache.set("a", True)
    clock.now += 8
    cache.set("a", False)
    clock.now += 8

    assert cache.get("a") == (False, True)


def test_ttl_is_clamped_to_one_second():
    assert ExpiringCache(0).ttl_seconds == 1.0
    assert ExpiringCache(-30).ttl_seconds == 1.0

    clock = FakeClock()
    cache: ExpiringCache[str, int] = ExpiringCache(0, clock=clock)
    cache.set("k", 1)
    clock.now += 0.5
    assert cache.get("k") == (1, True)
    clock.now += 1
    assert cache.get("k") == (None, False)


def test_missing_key():
    cache: ExpiringCache[str, bool] = ExpiringCache(60)
    assert cache.get("nope") == (None, False)


def test_remove_and_clear():
    cache: ExpiringCache[str, bool] = ExpiringCache(60)
    cache.set("a", True)
    cache.set("b", False)

    cache.remove("a")
    cache.remove("a")
    assert cache.get("a") == (None, False)

    cache.clear()
    assert len(cache) == 0


def test_concurrent_writers_and_readers():
    cache: ExpiringCache[int, int] = ExpiringCache(60)
    errors: list[BaseException] = []

    def worker(offset: int) -> None:
        try:
            for i in range(500):
                cache.set(offset * 1000 + i, i)
                cache.get(offset * 1000 + i)
        except BaseException as exc:  # pragma: no cover - surfaced by the assert below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(cache) == 8 * 500
