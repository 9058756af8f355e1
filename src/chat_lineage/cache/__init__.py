"""Stale-while-revalidate caching of chat listings.

Classes
-------
CacheManager
    Serves cached listings and revalidates them in the background.
CacheState
    EMPTY, FRESH, STALE, or REFRESHING.
RecordFetchError
    Raised when a foreground fetch fails.
"""
from __future__ import annotations

from chat_lineage.cache.manager import (
    CACHE_TTL_SECONDS,
    DEFAULT_ERROR_MESSAGE,
    CacheEntry,
    CacheManager,
    CacheState,
    RecordFetchError,
)

__all__ = [
    "CACHE_TTL_SECONDS",
    "DEFAULT_ERROR_MESSAGE",
    "CacheEntry",
    "CacheManager",
    "CacheState",
    "RecordFetchError",
]
