"""
Translation cache for avoiding redundant provider calls.
Maps a fingerprint of (target language, raw source text) to a translation.
"""
import hashlib
import logging
from collections import OrderedDict
from typing import Optional

from .constants import DEFAULT_CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)


def fingerprint(text: str, target_language: str) -> str:
    """
    Create a deterministic key for a text + language pair.
    Uses the raw (pre-sanitize) text, so identical requests share one slot.
    """
    key_str = f"{target_language}::{text}"
    return hashlib.sha256(key_str.encode('utf-8')).hexdigest()[:32]


class TranslationCache:
    """
    In-memory cache shared by every task of a pipeline.
    Entries live until clear() unless a max_entries bound is given,
    in which case the least recently used entry is evicted.
    """

    def __init__(self, max_entries: Optional[int] = DEFAULT_CACHE_MAX_ENTRIES):
        """
        Args:
            max_entries: Optional LRU bound. None keeps the cache unbounded.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive or None")
        self.max_entries = max_entries
        self.cache: "OrderedDict[str, str]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self.cache)

    def __contains__(self, key: str) -> bool:
        return key in self.cache

    def get(self, key: str) -> Optional[str]:
        """
        Get cached translation if available.

        Returns:
            Cached translation or None if not found
        """
        translation = self.cache.get(key)
        if translation is None:
            self.misses += 1
            return None

        self.hits += 1
        if self.max_entries is not None:
            self.cache.move_to_end(key)
        return translation

    def put(self, key: str, translation: str):
        """Store a translation. Last writer wins."""
        self.cache[key] = translation
        if self.max_entries is not None:
            self.cache.move_to_end(key)
            while len(self.cache) > self.max_entries:
                evicted, _ = self.cache.popitem(last=False)
                logger.debug(f"Evicted cache entry {evicted}")

    def clear(self) -> int:
        """Clear all cached entries and return how many were removed."""
        removed = len(self.cache)
        self.cache.clear()
        self.hits = 0
        self.misses = 0
        logger.info(f"Cache cleared ({removed} items)")
        return removed

    def get_stats(self) -> dict:
        """Get cache statistics."""
        lookups = self.hits + self.misses
        hit_rate = self.hits / lookups if lookups > 0 else 0

        return {
            'total_entries': len(self.cache),
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': f"{hit_rate:.1%}",
            'max_entries': self.max_entries,
        }
