"""Chat manager facade.

Provides ``ChatManager``, the entry point a front end talks to: it loads
lineage forests through a :class:`CacheManager` and performs open, rename,
and delete operations through a :class:`ChatMutations` collaborator, keeping
the cache consistent afterwards.

Classes
-------
- ChatManager  — load, select, expand, open, rename, and delete chats
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Union

from chat_lineage.actions.mutations import (
    DELETE_INTERVAL_SECONDS,
    BatchDeleteResult,
    ChatMutations,
    delete_records,
)
from chat_lineage.cache.manager import CacheManager
from chat_lineage.records.models import ChatRecord, ManagerSettings
from chat_lineage.tree.nodes import ChatForest, TreeNode
from chat_lineage.tree.ops import count_nodes, selected_nodes, set_all_expanded, set_all_selected

logger = logging.getLogger(__name__)

SETTLE_DELAY_SECONDS: float = 0.5

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]


class ChatManager:
    """Front-end facing operations over one owner's chats.

    Parameters
    ----------
    cache:
        The cache manager that owns the displayed records and forest.
    mutations:
        Collaborator performing open, rename, and delete calls.
    confirm:
        Optional callback asked before deleting when
        ``settings.confirm_delete`` is set.  Receives a prompt and returns
        (or resolves to) True to proceed.  Without a callback deletion
        proceeds.
    delete_interval:
        Pause between sequential delete requests, in seconds.
    settle_delay:
        Pause before reloading after a delete, in seconds.
    """

    def __init__(
        self,
        cache: CacheManager,
        mutations: ChatMutations,
        *,
        confirm: ConfirmCallback | None = None,
        delete_interval: float = DELETE_INTERVAL_SECONDS,
        settle_delay: float = SETTLE_DELAY_SECONDS,
    ) -> None:
        self._cache = cache
        self._mutations = mutations
        self._confirm = confirm
        self._delete_interval = delete_interval
        self._settle_delay = settle_delay

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def cache(self) -> CacheManager:
        return self._cache

    @property
    def settings(self) -> ManagerSettings:
        return self._cache.settings

    @property
    def forest(self) -> ChatForest:
        return self._cache.forest

    @property
    def records(self) -> list[ChatRecord]:
        return self._cache.records

    @property
    def current_record(self) -> ChatRecord | None:
        return self._cache.current_record

    @property
    def selected_nodes(self) -> list[TreeNode]:
        return selected_nodes(self._cache.forest)

    @property
    def selected_count(self) -> int:
        return len(self.selected_nodes)

    @property
    def total_count(self) -> int:
        return count_nodes(self._cache.forest)

    async def load(self, force: bool = False) -> ChatForest:
        """Load chats through the cache; see :meth:`CacheManager.load_chats`."""
        return await self._cache.load_chats(force)

    def select_all(self, selected: bool) -> None:
        set_all_selected(self._cache.forest, selected)

    def expand_all(self, expanded: bool) -> None:
        set_all_expanded(self._cache.forest, expanded)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def open_chat(self, record_id: str) -> bool:
        """Make *record_id* the active chat.

        Returns
        -------
        bool
            True on success.  Failures are logged, not raised.
        """
        try:
            ok = await self._mutations.open_record(record_id)
        except Exception:  # noqa: BLE001
            logger.error("ChatManager: opening %r raised", record_id, exc_info=True)
            return False
        if not ok:
            logger.error("ChatManager: could not open %r", record_id)
            return False

        for record in self._cache.records:
            record.is_current = record.record_id == record_id
        # Tree aggregates and ordering depend on the current chat.
        self._cache.rebuild_forest()
        logger.debug("ChatManager: opened %r", record_id)
        return True

    async def rename_chat(self, record_id: str, new_name: str) -> bool:
        """Rename *record_id* to *new_name* and reload the listing.

        Returns
        -------
        bool
            True on success.  Failures are logged, not raised.
        """
        try:
            ok = await self._mutations.rename_record(record_id, new_name)
        except Exception:  # noqa: BLE001
            logger.error("ChatManager: renaming %r raised", record_id, exc_info=True)
            return False
        if not ok:
            logger.error("ChatManager: could not rename %r", record_id)
            return False

        self._cache.invalidate()
        await self._cache.load_chats()
        return True

    async def delete_chats(self, record_ids: list[str]) -> BatchDeleteResult | None:
        """Delete *record_ids* and reload the listing.

        The records disappear from the view before the delete requests run.
        Afterwards the cache is invalidated and reloaded in the foreground.
        If the active chat was deleted, the first remaining chat is opened.

        Returns
        -------
        BatchDeleteResult | None
            None when there was nothing to delete or no owner is selected.

        Raises
        ------
        RecordFetchError
            If the post-delete reload fails.
        """
        if not record_ids:
            return None

        owner_key = self._cache.source.owner_key
        if owner_key is None:
            logger.error("ChatManager: cannot delete without an active owner")
            return None

        current = self._cache.current_record
        deletes_current = current is not None and current.record_id in record_ids

        file_names = {record.record_id: record.file_name for record in self._cache.records}
        doomed = set(record_ids)
        self._cache.records = [r for r in self._cache.records if r.record_id not in doomed]
        self._cache.rebuild_forest()

        result = await delete_records(
            self._mutations,
            owner_key,
            record_ids,
            file_names,
            interval=self._delete_interval,
        )

        if self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)

        self._cache.invalidate()
        await self._cache.load_chats(force=True)

        if deletes_current and self._cache.records:
            await self.open_chat(self._cache.records[0].record_id)

        return result

    async def delete_selected(self) -> BatchDeleteResult | None:
        """Delete every selected chat, asking for confirmation when configured.

        Returns
        -------
        BatchDeleteResult | None
            None when nothing was selected or the deletion was declined.
        """
        record_ids = [node.node_id for node in self.selected_nodes]
        if not record_ids:
            logger.warning("ChatManager: nothing selected to delete")
            return None

        if self.settings.confirm_delete and self._confirm is not None:
            answer = self._confirm(
                f"Delete {len(record_ids)} selected chat(s)? This cannot be undone."
            )
            if inspect.isawaitable(answer):
                answer = await answer
            if not answer:
                logger.debug("ChatManager: deletion declined")
                return None

        return await self.delete_chats(record_ids)

    def __repr__(self) -> str:
        return f"ChatManager(cache={self._cache!r})"


__all__ = ["SETTLE_DELAY_SECONDS", "ChatManager", "ConfirmCallback"]
