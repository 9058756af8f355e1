"""Filesystem record source.

Reads SillyTavern-style chat files from a chats directory laid out as
``<chats_dir>/<owner>/<chat>.jsonl``.  Each file holds one JSON object per
line; the first line may be a header carrying ``chat_metadata`` and is
skipped.

Classes
-------
- FilesystemRecordSource  — one ``.jsonl`` file per chat
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from chat_lineage.actions.mutations import CHAT_FILE_SUFFIX, ChatMutations, normalize_chat_file
from chat_lineage.records.models import ChatRecord
from chat_lineage.records.parser import build_record, strip_chat_suffix
from chat_lineage.sources.base import RecordSource

logger = logging.getLogger(__name__)


def read_chat_messages(path: Path) -> list[dict[str, Any]]:
    """Return the message objects stored in the chat file at *path*.

    Blank and undecodable lines are skipped, as is a leading header line.
    """
    messages: list[dict[str, Any]] = []
    with path.open(encoding="utf-8") as handle:
        for line_no, line in enumerate(handle):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("read_chat_messages: skipping bad line %d in %s", line_no + 1, path)
                continue
            if not isinstance(data, dict):
                continue
            if line_no == 0 and ("chat_metadata" in data or "mes" not in data):
                continue
            messages.append(data)
    return messages


class FilesystemRecordSource(RecordSource, ChatMutations):
    """Lists and mutates chat files of one owner.

    Parameters
    ----------
    chats_dir:
        Root directory holding one sub-directory per owner.
    owner_name:
        The active owner (character name); None when no owner is selected.
    current_file:
        Id or file name of the owner's active chat, if any.
    """

    def __init__(
        self,
        chats_dir: str | Path,
        owner_name: str | None,
        current_file: str | None = None,
    ) -> None:
        self._chats_dir = Path(chats_dir)
        self._owner_name = owner_name
        self._current_file = current_file

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _owner_dir(self, owner_key: str) -> Path:
        # Guard against path traversal.
        name = os.path.basename(owner_key)
        if name in ("", ".", ".."):
            raise ValueError(f"Invalid owner name {owner_key!r}.")
        return self._chats_dir / name

    def _path_for(self, owner_key: str, file_name: str) -> Path:
        return self._owner_dir(owner_key) / os.path.basename(normalize_chat_file(file_name))

    def _scan(self, preview_length: int) -> list[ChatRecord]:
        if self._owner_name is None:
            logger.warning("FilesystemRecordSource: no owner selected")
            return []

        owner_dir = self._owner_dir(self._owner_name)
        if not owner_dir.is_dir():
            logger.info("FilesystemRecordSource: owner %r has no chats", self._owner_name)
            return []

        records: list[ChatRecord] = []
        for path in sorted(owner_dir.glob(f"*{CHAT_FILE_SUFFIX}")):
            if not path.is_file():
                continue
            try:
                mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                messages = read_chat_messages(path)
            except (UnicodeDecodeError, OSError) as exc:
                logger.warning("FilesystemRecordSource: skipping unreadable %s: %s", path, exc)
                continue
            record = build_record(
                path.name,
                messages,
                owner_name=self._owner_name,
                current_file=self._current_file,
                preview_length=preview_length,
                fallback_time=mtime,
            )
            if record is not None:
                records.append(record)
        return records

    # ------------------------------------------------------------------
    # RecordSource interface
    # ------------------------------------------------------------------

    @property
    def owner_key(self) -> str | None:
        return self._owner_name

    async def fetch(self, preview_length: int) -> list[ChatRecord]:
        """Scan the owner's directory and return one record per non-empty chat."""
        return await asyncio.to_thread(self._scan, preview_length)

    # ------------------------------------------------------------------
    # ChatMutations interface
    # ------------------------------------------------------------------

    async def open_record(self, record_id: str) -> bool:
        if self._owner_name is None:
            return False
        if not self._path_for(self._owner_name, record_id).exists():
            return False
        self._current_file = strip_chat_suffix(record_id)
        return True

    async def rename_record(self, record_id: str, new_name: str) -> bool:
        """Rename the chat file; refuses to overwrite an existing chat."""
        if self._owner_name is None or not new_name.strip():
            return False
        source = self._path_for(self._owner_name, record_id)
        target = self._path_for(self._owner_name, new_name.strip())
        if not source.exists() or target.exists():
            return False
        await asyncio.to_thread(source.rename, target)
        if self._current_file is not None and strip_chat_suffix(self._current_file) == strip_chat_suffix(record_id):
            self._current_file = target.stem
        return True

    async def delete_record(self, owner_key: str, file_name: str) -> bool:
        path = self._path_for(owner_key, file_name)
        if not path.exists():
            logger.warning("FilesystemRecordSource: %s not found", path)
            return False
        await asyncio.to_thread(path.unlink)
        return True

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    @property
    def current_file(self) -> str | None:
        return self._current_file

    def switch_owner(self, owner_name: str | None, current_file: str | None = None) -> None:
        """Make *owner_name* the active owner."""
        self._owner_name = owner_name
        self._current_file = current_file

    def __repr__(self) -> str:
        return (
            f"FilesystemRecordSource(chats_dir={str(self._chats_dir)!r}, "
            f"owner={self._owner_name!r})"
        )


__all__ = ["FilesystemRecordSource", "read_chat_messages"]
