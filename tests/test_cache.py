import pytest

from page_translator.core.cache import TranslationCache, fingerprint


def test_fingerprint_is_deterministic():
    assert fingerprint("Hello", "zh") == fingerprint("Hello", "zh")


def test_fingerprint_depends_on_language_and_raw_text():
    assert fingerprint("Hello", "zh") != fingerprint("Hello", "ja")
    # Raw text, not the sanitized form
    assert fingerprint("Hello\x00", "zh") != fingerprint("Hello", "zh")


def test_get_put_and_stats():
    cache = TranslationCache()
    key = fingerprint("Hello", "zh")

    assert cache.get(key) is None
    cache.put(key, "你好")
    assert cache.get(key) == "你好"
    assert key in cache

    stats = cache.get_stats()
    assert stats['total_entries'] == 1
    assert stats['hits'] == 1
    assert stats['misses'] == 1
    assert stats['hit_rate'] == "50.0%"


def test_last_writer_wins():
    cache = TranslationCache()
    cache.put("k", "first")
    cache.put("k", "second")
    assert cache.get("k") == "second"
    assert len(cache) == 1


def test_clear_returns_removed_count():
    cache = TranslationCache()
    for i in range(3):
        cache.put(f"k{i}", f"v{i}")

    assert cache.clear() == 3
    assert len(cache) == 0
    assert cache.clear() == 0


def test_unbounded_by_default():
    cache = TranslationCache()
    for i in range(5000):
        cache.put(f"k{i}", "v")
    assert len(cache) == 5000


def test_lru_bound_evicts_least_recently_used():
    cache = TranslationCache(max_entries=2)
    cache.put("a", "1")
    cache.put("b", "2")
    cache.get("a")
    cache.put("c", "3")

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_invalid_bound():
    with pytest.raises(ValueError):
        TranslationCache(max_entries=0)
