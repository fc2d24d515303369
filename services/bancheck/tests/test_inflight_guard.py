"""Tests for per-slot in-flight tracking."""

import threading

from bancheck.core.inflight import InFlightGuard


def test_concurrent_admission_of_one_slot_admits_exactly_one():
    guard = InFlightGuard()
    barrier = threading.Barrier(16)
    results: list[bool] = []
    results_lock = threading.Lock()

    def join() -> None:
        barrier.wait()
        admitted = guard.try_admit(5)
        with results_lock:
            results.append(admitted)

    threads = [threading.Thread(target=join) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert results.count(False) == 15


def test_release_is_idempotent():
    guard = InFlightGuard()
    assert guard.try_admit(3)

    guard.release(3)
    guard.release(3)

    assert 3 not in guard
    assert guard.try_admit(3)


def test_release_of_unknown_slot_is_noop():
    guard = InFlightGuard()
    guard.release(42)
    assert len(guard) == 0


def test_stale_ticket_does_not_release_newer_admission():
    guard = InFlightGuard()
    old = guard.acquire(5)
    guard.release(5)
    new = guard.acquire(5)

    guard.release(5, old)
    assert 5 in guard

    guard.release(5, new)
    assert 5 not in guard


def test_slots_are_independent():
    guard = InFlightGuard()
    assert guard.try_admit(1)
    assert guard.try_admit(2)
    assert not guard.try_admit(1)

    guard.clear()
    assert len(guard) == 0
