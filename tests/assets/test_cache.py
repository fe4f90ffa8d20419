import threading
import time

import pytest

from magpie.assets.cache import CacheStore
from magpie.assets.errors import CacheUnavailable
from magpie.assets.janitor import CacheJanitor
from magpie.assets.settings import CacheSettings


def test_put_and_get(cache):
    cache.put("models/a.png", b"abc", marker="v1")

    entry = cache.get(CacheStore.make_key("models/a.png", "v1"))

    assert entry is not None
    assert entry.data == b"abc"
    assert entry.size_bytes == 3
    assert entry.expires_at == entry.stored_at + 60.0


def test_missing_key(cache):
    assert cache.get("nope@v1") is None


def test_new_marker_is_a_different_key(cache):
    cache.put("a.png", b"old", marker="v1")

    assert cache.get(CacheStore.make_key("a.png", "v2")) is None
    assert cache.get(CacheStore.make_key("a.png", "v1")).data == b"old"


def test_expired_entries_are_purged_on_read(cache, clock):
    cache.put("k", b"data")
    clock.advance(61)

    assert cache.get("k") is None
    assert cache.stats().entry_count == 0
    assert cache.stats().total_bytes == 0


def test_clear_expired_sweeps_without_reads(cache, clock):
    cache.put("old", b"1111")
    clock.advance(30)
    cache.put("new", b"22")
    clock.advance(31)

    assert cache.stats().expired_count == 1

    removed = cache.clear_expired()

    assert removed == 1
    assert "old" not in cache
    assert "new" in cache
    assert cache.stats().total_bytes == 2


def test_eviction_keeps_total_within_budget(cache, clock):
    for i in range(10):
        clock.advance(1)
        cache.put(f"k{i}", b"x" * 300)
        assert cache.stats().total_bytes <= 1024

    stats = cache.stats()
    assert stats.entry_count == 3
    assert stats.total_bytes == 900


def test_evicts_least_recently_read_not_oldest_inserted(cache, clock):
    cache.put("a", b"a" * 400)
    clock.advance(1)
    cache.put("b", b"b" * 400)
    clock.advance(1)

    # Reading "a" makes "b" the least recently read entry
    cache.get("a")
    clock.advance(1)
    cache.put("c", b"c" * 400)

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_read_updates_last_read(cache, clock):
    first = cache.put("a", b"1")
    clock.advance(5)

    entry = cache.get("a")

    assert entry.last_read == first.last_read + 5
    assert entry.stored_at == first.stored_at


def test_oversized_entries_are_not_cached(cache):
    assert cache.put("big", b"x" * 600) is None
    assert cache.stats().entry_count == 0


def test_reput_replaces_entry(cache):
    cache.put("k", b"1234")
    cache.put("k", b"12")

    stats = cache.stats()
    assert stats.entry_count == 1
    assert stats.total_bytes == 2


def test_remove_and_clear(cache):
    cache.put("a", b"1")
    cache.put("b", b"2")

    assert cache.remove("a") is True
    assert cache.remove("a") is False

    cache.clear()
    assert cache.stats().entry_count == 0


def test_disabled_cache_raises_unavailable(cache):
    cache.put("a", b"1")
    cache.disable()

    assert not cache.enabled
    with pytest.raises(CacheUnavailable):
        cache.get("a")
    with pytest.raises(CacheUnavailable):
        cache.put("a", b"1")
    assert cache.stats().entry_count == 0


def test_settings_validation():
    with pytest.raises(ValueError):
        CacheSettings(max_bytes=0)
    with pytest.raises(ValueError):
        CacheSettings(ttl_seconds=-1)


def test_concurrent_puts_respect_budget():
    store = CacheStore(
        CacheSettings(max_bytes=2000, max_entry_bytes=1000, ttl_seconds=60)
    )

    def writer(n):
        for i in range(50):
            store.put(f"{n}-{i}", b"x" * (50 + i))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stats = store.stats()
    assert stats.total_bytes <= 2000
    assert stats.total_bytes == sum(
        store.get(key).size_bytes for key in list(store._entries)
    )


def test_janitor_sweeps_periodically(cache, clock):
    cache.put("k", b"1")
    clock.advance(120)

    with CacheJanitor(cache, interval=0.01) as janitor:
        assert janitor.running
        for _ in range(200):
            if "k" not in cache:
                break
            time.sleep(0.01)

    assert "k" not in cache
    assert not janitor.running


def test_janitor_sweep_now_tolerates_disabled_cache(cache):
    cache.disable()
    janitor = CacheJanitor(cache, interval=1.0)

    assert janitor.sweep_now() == 0
