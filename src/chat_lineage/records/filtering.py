"""Sorting and filtering of flat record lists.

Functions
---------
- sort_key_for    — return the key function for a SortKey
- sort_records    — stable sort by a SortConfig
- filter_records  — search keyword and checkpoint visibility filter
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

from chat_lineage.records.models import ChatRecord, SortConfig, SortKey, SortOrder


def sort_key_for(key: SortKey) -> Callable[[ChatRecord], Any]:
    """Return the key function for *key*.

    Names compare case-insensitively.
    """
    if key is SortKey.UPDATED_AT:
        return lambda record: record.updated_at
    if key is SortKey.CREATED_AT:
        return lambda record: record.created_at
    if key is SortKey.NAME:
        return lambda record: record.display_name.casefold()
    return lambda record: record.message_count


def sort_records(records: Iterable[ChatRecord], config: SortConfig) -> list[ChatRecord]:
    """Return *records* sorted by *config*.

    The sort is stable in both directions: records with equal keys keep
    their original relative order.
    """
    return sorted(
        records,
        key=sort_key_for(config.by),
        reverse=config.order is SortOrder.DESC,
    )


def filter_records(
    records: Sequence[ChatRecord],
    *,
    search: str | None = None,
    show_checkpoints: bool = True,
) -> list[ChatRecord]:
    """Return the records that pass the checkpoint and search filters.

    Parameters
    ----------
    records:
        Records to filter.  Not mutated.
    search:
        Case-insensitive keyword matched against the display name and both
        message previews.  Blank keywords match everything.
    show_checkpoints:
        When False, checkpoint records are dropped.
    """
    result = list(records)

    if not show_checkpoints:
        result = [record for record in result if not record.is_checkpoint]

    keyword = (search or "").strip().lower()
    if keyword:
        result = [
            record
            for record in result
            if keyword in record.display_name.lower()
            or keyword in record.first_message_preview.lower()
            or keyword in record.last_message_preview.lower()
        ]

    return result


__all__ = ["filter_records", "sort_key_for", "sort_records"]
