"""Chat record models, parsing, and list filtering.

Classes
-------
ChatRecord
    One chat session as listed for an owner.
SortConfig
    Sort key plus direction.
ManagerSettings
    User settings consumed read-only by the manager.
"""
from __future__ import annotations

from chat_lineage.records.filtering import filter_records, sort_key_for, sort_records
from chat_lineage.records.models import (
    HEAD_MESSAGE_WINDOW,
    ChatRecord,
    ManagerSettings,
    SortConfig,
    SortKey,
    SortOrder,
)
from chat_lineage.records.parser import (
    build_record,
    detect_branch_info,
    extract_display_name,
    parse_file_timestamp,
    strip_chat_suffix,
    truncate_preview,
)

__all__ = [
    "HEAD_MESSAGE_WINDOW",
    "ChatRecord",
    "ManagerSettings",
    "SortConfig",
    "SortKey",
    "SortOrder",
    "build_record",
    "detect_branch_info",
    "extract_display_name",
    "filter_records",
    "parse_file_timestamp",
    "sort_key_for",
    "sort_records",
    "strip_chat_suffix",
    "truncate_preview",
]
