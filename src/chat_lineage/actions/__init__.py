"""Mutating chat operations and batch deletion."""
from __future__ import annotations

from chat_lineage.actions.mutations import (
    CHAT_FILE_SUFFIX,
    DELETE_INTERVAL_SECONDS,
    BatchDeleteResult,
    ChatMutations,
    delete_records,
    normalize_chat_file,
)

__all__ = [
    "CHAT_FILE_SUFFIX",
    "DELETE_INTERVAL_SECONDS",
    "BatchDeleteResult",
    "ChatMutations",
    "delete_records",
    "normalize_chat_file",
]
