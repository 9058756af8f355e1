"""In-memory record source.

Keeps chat records per owner in a plain dict guarded by ``asyncio.Lock``.
All data is lost when the process exits.  This source is primarily useful
for tests and local prototyping.

Classes
-------
- InMemoryRecordSource  — dict-backed records plus mutations
"""

from __future__ import annotations

import asyncio
from typing import Iterable

from chat_lineage.actions.mutations import ChatMutations, normalize_chat_file
from chat_lineage.records.models import ChatRecord
from chat_lineage.sources.base import RecordSource


class InMemoryRecordSource(RecordSource, ChatMutations):
    """Ephemeral record source backed by a dict of owner → records.

    Every :meth:`fetch` returns deep copies, so callers never share record
    objects between two fetches.

    Parameters
    ----------
    records:
        Optional initial mapping of owner key to records.  Lists are copied.
    owner_key:
        The initially active owner.
    """

    def __init__(
        self,
        records: dict[str, list[ChatRecord]] | None = None,
        owner_key: str | None = None,
    ) -> None:
        self._records: dict[str, list[ChatRecord]] = {
            owner: list(items) for owner, items in (records or {}).items()
        }
        self._owner_key = owner_key
        self._lock: asyncio.Lock = asyncio.Lock()
        self.fetch_count: int = 0
        self.fail_with: BaseException | None = None

    # ------------------------------------------------------------------
    # RecordSource interface
    # ------------------------------------------------------------------

    @property
    def owner_key(self) -> str | None:
        return self._owner_key

    async def fetch(self, preview_length: int) -> list[ChatRecord]:
        """Return copies of the active owner's records.

        Raises
        ------
        BaseException
            ``fail_with`` when it is set.
        """
        async with self._lock:
            self.fetch_count += 1
            if self.fail_with is not None:
                raise self.fail_with
            if self._owner_key is None:
                return []
            copies: list[ChatRecord] = []
            for record in self._records.get(self._owner_key, []):
                copy = record.model_copy(deep=True)
                copy.first_message_preview = copy.first_message_preview[:preview_length]
                copy.last_message_preview = copy.last_message_preview[:preview_length]
                copies.append(copy)
            return copies

    # ------------------------------------------------------------------
    # ChatMutations interface
    # ------------------------------------------------------------------

    async def open_record(self, record_id: str) -> bool:
        async with self._lock:
            records = self._records.get(self._owner_key or "", [])
            if not any(record.record_id == record_id for record in records):
                return False
            for record in records:
                record.is_current = record.record_id == record_id
            return True

    async def rename_record(self, record_id: str, new_name: str) -> bool:
        async with self._lock:
            for record in self._records.get(self._owner_key or "", []):
                if record.record_id == record_id:
                    record.display_name = new_name
                    return True
            return False

    async def delete_record(self, owner_key: str, file_name: str) -> bool:
        async with self._lock:
            records = self._records.get(owner_key, [])
            target = normalize_chat_file(file_name)
            for index, record in enumerate(records):
                if normalize_chat_file(record.file_name) == target:
                    del records[index]
                    return True
            return False

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def set_records(self, owner_key: str, records: Iterable[ChatRecord]) -> None:
        """Replace the records stored for *owner_key*."""
        self._records[owner_key] = list(records)

    def switch_owner(self, owner_key: str | None) -> None:
        """Make *owner_key* the active owner."""
        self._owner_key = owner_key

    def __len__(self) -> int:
        return len(self._records.get(self._owner_key or "", []))

    def __repr__(self) -> str:
        return f"InMemoryRecordSource(owners={len(self._records)}, owner={self._owner_key!r})"


__all__ = ["InMemoryRecordSource"]
