"""Mutating chat operations: open, rename, and batch delete.

The collaborator performing the actual calls implements
:class:`ChatMutations`.  This module owns what happens around those calls:
file-name normalisation and sequential batch deletion with an aggregated
result.

Classes
-------
- ChatMutations      — abstract collaborator contract
- BatchDeleteResult  — aggregate outcome of a batch delete

Functions
---------
- normalize_chat_file  — canonical ``<name>.jsonl`` file name
- delete_records       — sequential batch delete
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)

CHAT_FILE_SUFFIX: str = ".jsonl"
DELETE_INTERVAL_SECONDS: float = 0.1


class ChatMutations(ABC):
    """Collaborator performing open, rename, and delete calls.

    Each method returns True on success and False on a reported failure;
    it may also raise for transport errors.
    """

    @abstractmethod
    async def open_record(self, record_id: str) -> bool:
        """Make *record_id* the owner's active chat."""

    @abstractmethod
    async def rename_record(self, record_id: str, new_name: str) -> bool:
        """Rename the chat *record_id* to *new_name*."""

    @abstractmethod
    async def delete_record(self, owner_key: str, file_name: str) -> bool:
        """Delete the chat file *file_name* belonging to *owner_key*."""


@dataclass
class BatchDeleteResult:
    """Aggregate outcome of :func:`delete_records`.

    Parameters
    ----------
    success_count:
        Number of records deleted.
    fail_count:
        Number of records whose deletion failed or raised.
    failed_ids:
        Ids of the failed records, in request order.
    """

    success_count: int = 0
    fail_count: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.fail_count

    @property
    def all_succeeded(self) -> bool:
        return self.fail_count == 0

    @property
    def partial(self) -> bool:
        """True when some, but not all, deletions failed."""
        return self.success_count > 0 and self.fail_count > 0

    @property
    def all_failed(self) -> bool:
        return self.fail_count > 0 and self.success_count == 0


def normalize_chat_file(name: str) -> str:
    """Return *name* with every trailing ``.jsonl`` removed and exactly one appended."""
    base = name
    while base.endswith(CHAT_FILE_SUFFIX):
        base = base[: -len(CHAT_FILE_SUFFIX)]
    return f"{base}{CHAT_FILE_SUFFIX}"


async def delete_records(
    mutations: ChatMutations,
    owner_key: str,
    record_ids: Sequence[str],
    file_names: Mapping[str, str] | None = None,
    *,
    interval: float = DELETE_INTERVAL_SECONDS,
) -> BatchDeleteResult:
    """Delete *record_ids* one at a time and aggregate the outcome.

    A failing item never aborts the batch.

    Parameters
    ----------
    mutations:
        The collaborator performing each delete.
    owner_key:
        Owner the records belong to.
    record_ids:
        Records to delete, in order.
    file_names:
        Optional record id → file name mapping; ids without an entry are
        used as the file name.
    interval:
        Pause in seconds after each request when deleting more than one
        record, to let the backing store settle.

    Returns
    -------
    BatchDeleteResult
    """
    names = file_names or {}
    result = BatchDeleteResult()

    for record_id in record_ids:
        chat_file = normalize_chat_file(names.get(record_id) or record_id)
        try:
            ok = await mutations.delete_record(owner_key, chat_file)
        except Exception:  # noqa: BLE001
            logger.warning("delete_records: deleting %r raised", chat_file, exc_info=True)
            ok = False

        if ok:
            result.success_count += 1
            logger.debug("delete_records: deleted %r", chat_file)
        else:
            result.fail_count += 1
            result.failed_ids.append(record_id)

        if len(record_ids) > 1 and interval > 0:
            await asyncio.sleep(interval)

    if result.fail_count:
        logger.warning(
            "delete_records: %d succeeded, %d failed: %s",
            result.success_count,
            result.fail_count,
            result.failed_ids,
        )
    return result


__all__ = [
    "CHAT_FILE_SUFFIX",
    "DELETE_INTERVAL_SECONDS",
    "BatchDeleteResult",
    "ChatMutations",
    "delete_records",
    "normalize_chat_file",
]
