"""Chat record domain models.

All types are Pydantic BaseModel subclasses to enable runtime validation
and JSON serialisation.

Classes
-------
- SortKey          — enum of record attributes usable as sort keys
- SortOrder        — ascending / descending
- SortConfig       — sort key plus direction
- ChatRecord       — one chat session as listed for an owner
- ManagerSettings  — user settings consumed read-only by the manager
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

HEAD_MESSAGE_WINDOW: int = 5


class SortKey(str, Enum):
    """Record attributes a listing can be sorted by."""

    UPDATED_AT = "updated_at"
    CREATED_AT = "created_at"
    NAME = "name"
    MESSAGE_COUNT = "message_count"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SortConfig(BaseModel):
    """Sort configuration for record listings.

    Parameters
    ----------
    by:
        The attribute to sort on.  Defaults to ``updated_at``.
    order:
        Sort direction.  Defaults to descending (newest first).
    """

    by: SortKey = SortKey.UPDATED_AT
    order: SortOrder = SortOrder.DESC

    model_config = {"frozen": True}


class ChatRecord(BaseModel):
    """A single chat session belonging to one owner.

    Parameters
    ----------
    record_id:
        Stable identifier, unique within one source response.  For file
        backed chats this is the file name without its ``.jsonl`` suffix.
    file_name:
        The filename-like name of the chat (``"Alice - 2024-12-28@10h30m45s.jsonl"``).
    display_name:
        Human-readable name with timestamps and owner prefix removed.
    created_at:
        When the chat was created (UTC).
    updated_at:
        When the chat last received a message (UTC).
    message_count:
        Total number of messages in the chat.
    first_message_preview:
        Cleaned, truncated text of the first message.
    last_message_preview:
        Cleaned, truncated text of the last message.
    parent_hint:
        Raw parent reference carried by the chat itself, if any.  Resolved
        into a record id by :class:`~chat_lineage.branching.MetadataResolver`.
    branch_point:
        Message index the chat branched at, when known.
    is_checkpoint:
        Whether the chat is a saved snapshot rather than a live branch.
    is_current:
        Whether the chat is the owner's active chat.
    head_messages:
        Raw bodies of the first few messages, used for similarity-based
        branch detection.
    """

    record_id: str
    file_name: str = ""
    display_name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message_count: int = Field(default=0, ge=0)
    first_message_preview: str = ""
    last_message_preview: str = ""
    parent_hint: str | None = None
    branch_point: int | None = None
    is_checkpoint: bool = False
    is_current: bool = False
    head_messages: list[str] = Field(default_factory=list)

    model_config = {"frozen": False}

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("head_messages")
    @classmethod
    def _trim_head(cls, value: list[str]) -> list[str]:
        return list(value[:HEAD_MESSAGE_WINDOW])

    def model_post_init(self, __context: object) -> None:
        if not self.file_name:
            self.file_name = f"{self.record_id}.jsonl"
        if not self.display_name:
            self.display_name = self.record_id

    def summary_line(self) -> str:
        """Return a one-line human-readable description."""
        flags = ""
        if self.is_current:
            flags += " *"
        if self.is_checkpoint:
            flags += " [checkpoint]"
        return (
            f"{self.display_name} ({self.message_count} msgs, "
            f"updated {self.updated_at:%Y-%m-%d %H:%M}){flags}"
        )


class ManagerSettings(BaseModel):
    """User-facing settings of the chat manager.

    Parameters
    ----------
    default_sort:
        Sort applied when the manager starts.
    preview_length:
        Maximum characters kept in message previews.
    show_checkpoints:
        Whether checkpoint chats are listed.
    confirm_delete:
        Whether deleting requires an explicit confirmation.
    """

    default_sort: SortConfig = Field(default_factory=SortConfig)
    preview_length: int = Field(default=50, ge=1)
    show_checkpoints: bool = True
    confirm_delete: bool = True


__all__ = [
    "HEAD_MESSAGE_WINDOW",
    "ChatRecord",
    "ManagerSettings",
    "SortConfig",
    "SortKey",
    "SortOrder",
]
