"""Stale-while-revalidate cache over a record source.

Design
------
:class:`CacheManager` owns one cache entry (records, write time, owner) and
the currently displayed records and forest.  A cached listing is valid
while the owner is unchanged and the entry is younger than the TTL.

``load_chats()`` serves a valid entry immediately, rebuilds the forest from
it unless it already matches the displayed records, and schedules a
background refresh on every cache hit.  Without a
valid entry (or when forced) it fetches in the foreground; failures set
``error_message``, leave the view and cache untouched, and raise
:class:`RecordFetchError`.

Background refreshes are single-flight: a request while one is running is
dropped.  When the refresh completes, the fetched id sequence is compared
with the displayed one.  An unchanged sequence only bumps the cache write
time, so existing nodes keep their selection and expansion state.  A
changed sequence swaps in the new records and rebuilds the forest.  A
failing background refresh is logged and otherwise ignored.  A refresh
that was started before an ``invalidate()`` or a foreground load finishes
without touching the view or the cache.

All work runs on one asyncio event loop; the swap happens without an
intervening ``await``, so the view never reflects a partial refresh.

Usage
-----
::

    manager = CacheManager(source, ManagerSettings())
    forest = await manager.load_chats()
    ...
    await manager.aclose()
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from chat_lineage.branching.resolver import resolve_relations
from chat_lineage.records.filtering import filter_records
from chat_lineage.records.models import ChatRecord, ManagerSettings, SortConfig
from chat_lineage.sources.base import RecordSource
from chat_lineage.tree.builder import ForestBuilder
from chat_lineage.tree.nodes import ChatForest

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS: float = 300.0
DEFAULT_ERROR_MESSAGE: str = "Failed to load chat records"


def _id_sequence(records: list[ChatRecord]) -> list[str]:
    return [record.record_id for record in records]


class CacheState(str, Enum):
    """Lifecycle states of the cached listing for the active owner."""

    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


class RecordFetchError(RuntimeError):
    """Raised when a foreground fetch from the record source fails."""

    def __init__(self, owner_key: str | None, message: str) -> None:
        self.owner_key = owner_key
        super().__init__(f"Could not load chats for {owner_key!r}: {message}")


@dataclass
class CacheEntry:
    """One cached listing.

    Parameters
    ----------
    records:
        The records as fetched.
    timestamp:
        Wall-clock write time in seconds.
    owner_key:
        Owner the records belong to.
    """

    records: list[ChatRecord]
    timestamp: float
    owner_key: str


class CacheManager:
    """Serve chat listings from cache while revalidating in the background.

    Parameters
    ----------
    source:
        The record source to fetch from.
    settings:
        Manager settings; ``preview_length`` and ``show_checkpoints`` are
        read from it.  Defaults to :class:`ManagerSettings` defaults.
    sort_config:
        Initial sort.  Defaults to ``settings.default_sort``.
    ttl:
        Cache lifetime in seconds.  Default 300 (five minutes).
    clock:
        Wall-clock function returning seconds.  Defaults to ``time.time``.
    """

    def __init__(
        self,
        source: RecordSource,
        settings: ManagerSettings | None = None,
        *,
        sort_config: SortConfig | None = None,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}.")
        self._source = source
        self._settings = settings or ManagerSettings()
        self._ttl = ttl
        self._clock = clock
        self._entry: CacheEntry | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._closed = False
        # Bumped whenever cached data is superseded; refreshes started under
        # an older generation discard their result.
        self._generation = 0

        self.sort_config: SortConfig = sort_config or self._settings.default_sort
        self.search_keyword: str = ""
        self.records: list[ChatRecord] = []
        self.forest: ChatForest = ChatForest()
        self.error_message: str | None = None
        self.is_loading: bool = False
        self.is_background_loading: bool = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def source(self) -> RecordSource:
        return self._source

    @property
    def settings(self) -> ManagerSettings:
        return self._settings

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def state(self) -> CacheState:
        """Current cache state for the active owner."""
        if self.is_background_loading:
            return CacheState.REFRESHING
        entry = self._entry
        if entry is None or entry.owner_key != self._source.owner_key:
            return CacheState.EMPTY
        if self._clock() - entry.timestamp < self._ttl:
            return CacheState.FRESH
        return CacheState.STALE

    @property
    def cache_time(self) -> datetime | None:
        """Write time of the cache entry, or None when nothing is cached."""
        if self._entry is None:
            return None
        return datetime.fromtimestamp(self._entry.timestamp, tz=timezone.utc)

    @property
    def filtered_records(self) -> list[ChatRecord]:
        """Displayed records after the search and checkpoint filters."""
        return filter_records(
            self.records,
            search=self.search_keyword,
            show_checkpoints=self._settings.show_checkpoints,
        )

    @property
    def current_record(self) -> ChatRecord | None:
        return next((record for record in self.records if record.is_current), None)

    # ------------------------------------------------------------------
    # Cache bookkeeping
    # ------------------------------------------------------------------

    def is_cache_valid(self) -> bool:
        """Return True when the entry belongs to the active owner and is within the TTL."""
        entry = self._entry
        owner_key = self._source.owner_key
        if entry is None or owner_key is None:
            return False
        return entry.owner_key == owner_key and self._clock() - entry.timestamp < self._ttl

    def _store(self, records: list[ChatRecord]) -> None:
        owner_key = self._source.owner_key
        if owner_key is None:
            return
        self._entry = CacheEntry(records=records, timestamp=self._clock(), owner_key=owner_key)

    def _touch(self) -> None:
        if self._entry is not None:
            self._entry.timestamp = self._clock()

    def invalidate(self) -> None:
        """Drop the cache entry so the next load fetches in the foreground.

        A background refresh already in flight is discarded when it
        completes, so it cannot restore the dropped records.
        """
        self._entry = None
        self._generation += 1
        logger.debug("CacheManager: cache invalidated")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_chats(self, force: bool = False) -> ChatForest:
        """Load the active owner's chats and rebuild the forest.

        Parameters
        ----------
        force:
            Skip the cache and fetch in the foreground.

        Returns
        -------
        ChatForest
            The rebuilt forest (also available as ``self.forest``).

        Raises
        ------
        RecordFetchError
            If a foreground fetch fails.  ``error_message`` is set and the
            displayed records and cache are left unchanged.
        """
        self.error_message = None

        if not force and self.is_cache_valid() and self._entry is not None:
            cached = self._entry.records
            logger.info("CacheManager: serving %d cached record(s)", len(cached))
            # Keep the existing nodes (and their view state) when the cache
            # holds exactly what is already displayed.
            if _id_sequence(cached) != _id_sequence(self.records) or not self.forest.arena:
                self.records = cached
                self.rebuild_forest()
            self.refresh_in_background()
            return self.forest

        self.is_loading = True
        try:
            records = await self._source.fetch(self._settings.preview_length)
        except Exception as exc:
            self.error_message = str(exc) or DEFAULT_ERROR_MESSAGE
            logger.error("CacheManager: foreground fetch failed: %s", self.error_message)
            raise RecordFetchError(self._source.owner_key, self.error_message) from exc
        finally:
            self.is_loading = False

        self.records = records
        self._store(records)
        self._generation += 1
        self.rebuild_forest()
        logger.info("CacheManager: loaded %d record(s)", len(records))
        return self.forest

    def refresh_in_background(self) -> asyncio.Task[None] | None:
        """Schedule a background refresh unless one is already running.

        Returns
        -------
        asyncio.Task | None
            The scheduled task, or None when the request was dropped.
        """
        if self.is_background_loading or self._closed:
            return None
        self.is_background_loading = True
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._refresh(self._generation)
        )
        return self._refresh_task

    async def _refresh(self, generation: int) -> None:
        try:
            records = await self._source.fetch(self._settings.preview_length)
            if generation != self._generation:
                logger.debug("CacheManager: discarding superseded background refresh")
            elif _id_sequence(records) != _id_sequence(self.records):
                logger.info("CacheManager: background refresh found changes, updating view")
                self.records = records
                self._store(records)
                self.rebuild_forest()
            else:
                self._touch()
        except Exception as exc:  # noqa: BLE001
            logger.warning("CacheManager: background refresh failed: %s", exc)
        finally:
            self.is_background_loading = False

    async def wait_for_refresh(self) -> None:
        """Wait for the in-flight background refresh, if any."""
        task = self._refresh_task
        if task is not None and not task.done():
            await task

    # ------------------------------------------------------------------
    # View rebuilding
    # ------------------------------------------------------------------

    def rebuild_forest(self) -> ChatForest:
        """Rebuild ``self.forest`` from the displayed records.

        Every rebuild creates new nodes, so selection and expansion reset.
        """
        visible = self.filtered_records
        relations = resolve_relations(visible)
        self.forest = ForestBuilder(self.sort_config).build_forest(visible, relations)
        return self.forest

    def set_sort_config(self, sort_config: SortConfig) -> ChatForest:
        self.sort_config = sort_config
        return self.rebuild_forest()

    def set_search_keyword(self, keyword: str) -> ChatForest:
        self.search_keyword = keyword
        return self.rebuild_forest()

    def set_show_checkpoints(self, show: bool) -> ChatForest:
        self._settings = self._settings.model_copy(update={"show_checkpoints": show})
        return self.rebuild_forest()

    def apply_settings(self, settings: ManagerSettings) -> ChatForest:
        """Replace the settings and rebuild the forest."""
        self._settings = settings
        return self.rebuild_forest()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Stop accepting refreshes and wait for one still in flight."""
        self._closed = True
        await self.wait_for_refresh()
        self._refresh_task = None

    async def __aenter__(self) -> CacheManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"CacheManager(owner={self._source.owner_key!r}, state={self.state.value!r}, "
            f"records={len(self.records)})"
        )


__all__ = [
    "CACHE_TTL_SECONDS",
    "DEFAULT_ERROR_MESSAGE",
    "CacheEntry",
    "CacheManager",
    "CacheState",
    "RecordFetchError",
]
