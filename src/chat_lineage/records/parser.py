"""Build :class:`ChatRecord` objects from raw chat files.

Chat files follow the SillyTavern convention: one JSON object per line,
named ``<owner> - <timestamp>.jsonl``.  Branches created by the front end
carry a ``_branch_from_<parent>`` marker in the file name and checkpoints
contain ``checkpoint`` or ``_cp_``.

Functions
---------
- parse_file_timestamp  — extract the creation timestamp from a file name
- extract_display_name  — strip suffix, timestamps, and owner prefix
- truncate_preview      — clean markup and truncate message text
- detect_branch_info    — checkpoint flag and parent hint from a file name
- strip_chat_suffix     — drop a trailing ``.jsonl`` / ``.json`` suffix
- build_record          — assemble a ChatRecord from parsed messages
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Sequence

from chat_lineage.records.models import HEAD_MESSAGE_WINDOW, ChatRecord

UNNAMED_CHAT: str = "Untitled chat"

_SUFFIX_RE = re.compile(r"\.jsonl?$")
_AT_STAMP_RE = re.compile(r"(\d{4}-\d{2}-\d{2})@(\d{2})h(\d{2})m(\d{2})s")
_COMPACT_STAMP_RE = re.compile(r"(\d{4})(\d{2})(\d{2})-(\d{2})(\d{2})(\d{2})")
_EPOCH_MS_RE = re.compile(r"(\d{13})")
_BRANCH_RE = re.compile(r"_branch_from_(.+?)(?:_|\.)")

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+)\*")
_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_NEWLINES_RE = re.compile(r"\n+")


def strip_chat_suffix(name: str) -> str:
    """Return *name* without a trailing ``.jsonl`` or ``.json`` suffix."""
    return _SUFFIX_RE.sub("", name)


def parse_file_timestamp(file_name: str) -> datetime | None:
    """Extract the creation timestamp embedded in a chat file name.

    Recognised formats, tried in order:

    - ``2024-12-28@10h30m45s``
    - ``20241228-103045``
    - a 13-digit Unix timestamp in milliseconds

    Parameters
    ----------
    file_name:
        The chat file name.

    Returns
    -------
    datetime | None
        The timestamp as an aware UTC datetime, or None when no format
        matches or the matched digits are not a valid date.
    """
    try:
        match = _AT_STAMP_RE.search(file_name)
        if match:
            date, hour, minute, second = match.groups()
            parsed = datetime.strptime(f"{date} {hour}:{minute}:{second}", "%Y-%m-%d %H:%M:%S")
            return parsed.replace(tzinfo=timezone.utc)

        match = _COMPACT_STAMP_RE.search(file_name)
        if match:
            year, month, day, hour, minute, second = (int(part) for part in match.groups())
            return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)

        match = _EPOCH_MS_RE.search(file_name)
        if match:
            return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc)
    except (ValueError, OverflowError):
        return None
    return None


def extract_display_name(file_name: str, owner_name: str) -> str:
    """Return a display name with suffix, timestamps, and owner prefix removed.

    Falls back to the suffix-less file name when stripping leaves nothing.
    """
    name = strip_chat_suffix(file_name)
    name = re.sub(r"\d{4}-\d{2}-\d{2}@\d{2}h\d{2}m\d{2}s", "", name, count=1)
    name = re.sub(r"\d{13}", "", name, count=1)
    if owner_name:
        name = re.sub(rf"^{re.escape(owner_name)}\s*-?\s*", "", name)
    name = name.strip()

    if not name:
        name = strip_chat_suffix(file_name)

    return name or UNNAMED_CHAT


def truncate_preview(message: str, max_length: int) -> str:
    """Strip markup from *message* and truncate it to *max_length* characters.

    HTML tags, bold/italic markers and inline code ticks are removed, code
    blocks are replaced by ``[code]`` and runs of newlines collapse to a
    single space.  Truncated text gets a ``...`` suffix.
    """
    if not message:
        return ""

    clean = _HTML_TAG_RE.sub("", message)
    clean = _BOLD_RE.sub(r"\1", clean)
    clean = _ITALIC_RE.sub(r"\1", clean)
    clean = _CODE_BLOCK_RE.sub("[code]", clean)
    clean = _INLINE_CODE_RE.sub(r"\1", clean)
    clean = _NEWLINES_RE.sub(" ", clean).strip()

    if len(clean) <= max_length:
        return clean
    return clean[:max_length] + "..."


def detect_branch_info(file_name: str) -> tuple[bool, str | None]:
    """Return ``(is_checkpoint, parent_hint)`` derived from *file_name*."""
    is_checkpoint = "checkpoint" in file_name or "_cp_" in file_name
    match = _BRANCH_RE.search(file_name)
    return is_checkpoint, match.group(1) if match else None


def _message_time(message: dict[str, Any]) -> datetime | None:
    extra = message.get("extra")
    if not isinstance(extra, dict):
        return None
    for key in ("gen_started", "gen_finished"):
        raw = extra.get(key)
        if not raw:
            continue
        try:
            if isinstance(raw, (int, float)):
                return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
            return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except (ValueError, OverflowError):
            continue
    return None


def build_record(
    file_name: str,
    messages: Sequence[dict[str, Any]],
    *,
    owner_name: str,
    current_file: str | None = None,
    preview_length: int = 50,
    fallback_time: datetime | None = None,
) -> ChatRecord | None:
    """Assemble a :class:`ChatRecord` from the parsed messages of one chat.

    Parameters
    ----------
    file_name:
        The chat file name including its suffix.
    messages:
        Message objects in chat order.  Each may carry ``mes`` (text) and
        ``extra.gen_started`` / ``extra.gen_finished`` timestamps.
    owner_name:
        Name of the owner (character); stripped from the display name.
    current_file:
        Id or file name of the owner's active chat, if known.
    preview_length:
        Maximum preview length.
    fallback_time:
        Creation time used when the file name carries no timestamp
        (typically the file's modification time).  Defaults to the epoch.

    Returns
    -------
    ChatRecord | None
        None when *messages* is empty; empty chats are not listed.
    """
    if not messages:
        return None

    record_id = strip_chat_suffix(file_name)
    first_msg = messages[0]
    last_msg = messages[-1]
    is_checkpoint, parent_hint = detect_branch_info(file_name)

    created_at = parse_file_timestamp(file_name) or fallback_time
    if created_at is None:
        created_at = datetime.fromtimestamp(0, tz=timezone.utc)
    updated_at = _message_time(last_msg) or created_at

    is_current = current_file is not None and strip_chat_suffix(current_file) == record_id

    return ChatRecord(
        record_id=record_id,
        file_name=file_name,
        display_name=extract_display_name(file_name, owner_name),
        created_at=created_at,
        updated_at=updated_at,
        message_count=len(messages),
        first_message_preview=truncate_preview(str(first_msg.get("mes") or ""), preview_length),
        last_message_preview=truncate_preview(str(last_msg.get("mes") or ""), preview_length),
        parent_hint=parent_hint,
        is_checkpoint=is_checkpoint,
        is_current=is_current,
        head_messages=[str(m.get("mes") or "") for m in messages[:HEAD_MESSAGE_WINDOW]],
    )


__all__ = [
    "UNNAMED_CHAT",
    "build_record",
    "detect_branch_info",
    "extract_display_name",
    "parse_file_timestamp",
    "strip_chat_suffix",
    "truncate_preview",
]
