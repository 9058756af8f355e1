"""Record sources listing the chats of the active owner."""
from __future__ import annotations

from chat_lineage.sources.base import RecordSource
from chat_lineage.sources.filesystem import FilesystemRecordSource, read_chat_messages
from chat_lineage.sources.memory import InMemoryRecordSource

__all__ = [
    "FilesystemRecordSource",
    "InMemoryRecordSource",
    "RecordSource",
    "read_chat_messages",
]
