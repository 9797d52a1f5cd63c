import threading
import time

from testgen_agent.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_set_then_get_returns_value():
    cache = TTLCache(clock=FakeClock())
    cache.set("k", {"v": 1}, ttl=10)
    assert cache.get("k") == {"v": 1}
    assert cache.has("k")
    assert "k" in cache


def test_get_after_ttl_is_absent_without_sweep():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v", ttl=10)

    clock.advance(10)
    assert cache.get("k") == "v"  # age == ttl is still live

    clock.advance(0.5)
    assert cache.get("k") is None
    assert cache.get("k", "missing") == "missing"
    assert cache.size() == 0


def test_has_removes_expired_entry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v", ttl=1)
    clock.advance(2)
    assert cache.has("k") is False
    assert cache.size() == 0


def test_default_ttl_is_five_minutes():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v")
    clock.advance(299)
    assert cache.has("k")
    clock.advance(2)
    assert not cache.has("k")


def test_sweep_drops_expired_entries_from_size():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("short", 1, ttl=1)
    cache.set("long", 2, ttl=100)
    clock.advance(5)

    assert cache.size() == 2  # expired but not yet swept
    assert cache.sweep() == 1
    assert cache.size() == 1
    assert cache.get("long") == 2


def test_delete_and_clear():
    cache = TTLCache(clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    cache.delete("missing")
    assert cache.size() == 1
    cache.clear()
    assert len(cache) == 0


def test_last_writer_wins():
    cache = TTLCache(clock=FakeClock())
    cache.set("k", "first")
    cache.set("k", "second")
    assert cache.get("k") == "second"
    assert cache.size() == 1


def test_background_sweeper_runs_and_stops():
    clock = FakeClock()
    cache = TTLCache(sweep_interval=0.01, clock=clock)
    cache.set("k", "v", ttl=1)
    clock.advance(5)

    with cache:
        deadline = time.monotonic() + 2.0
        while cache.size() and time.monotonic() < deadline:
            time.sleep(0.01)
    assert cache.size() == 0


def test_concurrent_writers_leave_consistent_store():
    cache = TTLCache(clock=FakeClock())

    def writer(offset: int) -> None:
        for i in range(200):
            cache.set(f"k{i % 20}", offset)
            cache.get(f"k{(i + 1) % 20}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.size() == 20
    assert all(cache.get(f"k{i}") in range(4) for i in range(20))
