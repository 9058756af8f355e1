"""Branch relation resolution — infer which chat branched from which.

Design
------
A resolver turns a list of :class:`ChatRecord` objects into a mapping of
child record id to parent record id.  The mapping may be partial: records
without an entry have no known parent.

Two strategies share the :class:`RelationResolver` interface:

- :class:`MetadataResolver` resolves the ``parent_hint`` each record
  already carries through an alias table of every identity form of every
  record.
- :class:`ContentSimilarityResolver` compares the first few message bodies
  of every pair of records and links pairs sharing a long enough prefix.

:func:`select_resolver` picks the strategy once per record set: metadata
when any record carries a hint, content similarity otherwise.

Resolvers are deterministic and never raise; missing or ambiguous data
degrades to "no parent".

Usage
-----
::

    from chat_lineage.branching import resolve_relations

    relations = resolve_relations(records)
    parent_id = relations.get("Alice - branch 2")
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

from chat_lineage.records.models import HEAD_MESSAGE_WINDOW, ChatRecord
from chat_lineage.records.parser import strip_chat_suffix

logger = logging.getLogger(__name__)


class RelationStrategy(str, Enum):
    """Tag identifying how a resolver derives relations."""

    METADATA = "metadata"
    CONTENT_SIMILARITY = "content_similarity"


# ---------------------------------------------------------------------------
# RelationResolver
# ---------------------------------------------------------------------------


class RelationResolver(ABC):
    """Shared interface for branch relation strategies."""

    strategy: RelationStrategy

    @abstractmethod
    def resolve(self, records: Sequence[ChatRecord]) -> dict[str, str]:
        """Return a child id → parent id mapping for *records*.

        Parameters
        ----------
        records:
            Ordered records; ids are unique.

        Returns
        -------
        dict[str, str]
            Possibly partial mapping.  Empty for an empty input.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(strategy={self.strategy.value!r})"


# ---------------------------------------------------------------------------
# MetadataResolver
# ---------------------------------------------------------------------------


class MetadataResolver(RelationResolver):
    """Resolve the parent hints records already carry.

    A hint may name its parent by record id, by full file name, or by file
    name without the session-file suffix; all three forms map to the
    canonical record id.  Hints pointing at the record itself or at no known
    record are discarded.
    """

    strategy = RelationStrategy.METADATA

    @staticmethod
    def build_alias_table(records: Sequence[ChatRecord]) -> dict[str, str]:
        """Map every known identity form of every record to its record id."""
        aliases: dict[str, str] = {}
        for record in records:
            for alias in (record.record_id, record.file_name, strip_chat_suffix(record.file_name)):
                if alias:
                    aliases.setdefault(alias, record.record_id)
        return aliases

    def resolve(self, records: Sequence[ChatRecord]) -> dict[str, str]:
        aliases = self.build_alias_table(records)
        relations: dict[str, str] = {}

        for record in records:
            hint = record.parent_hint
            if not hint:
                continue
            parent_id = aliases.get(hint) or aliases.get(strip_chat_suffix(hint))
            if parent_id is None:
                logger.debug("MetadataResolver: unresolved parent hint %r on %r", hint, record.record_id)
                continue
            if parent_id == record.record_id:
                continue
            relations[record.record_id] = parent_id

        return relations


# ---------------------------------------------------------------------------
# ContentSimilarityResolver
# ---------------------------------------------------------------------------


def common_prefix_length(left: Sequence[str], right: Sequence[str]) -> int:
    """Return the number of leading positions where *left* and *right* are equal."""
    length = 0
    for a, b in zip(left, right):
        if a != b:
            break
        length += 1
    return length


class ContentSimilarityResolver(RelationResolver):
    """Link records whose opening messages are identical.

    For every unordered pair the first *prefix_window* message bodies are
    compared position by position with exact equality.  Pairs sharing at
    least *threshold* leading messages are related: the record with more
    messages is the parent, and on a tie the one created earlier.

    Pairs are visited in input order and written into one mapping, so a
    record related to several others keeps only the last pair's relation.

    Parameters
    ----------
    prefix_window:
        Number of leading messages compared.  Default 5.
    threshold:
        Minimum common prefix length to declare a relation.  Default 2.
    """

    strategy = RelationStrategy.CONTENT_SIMILARITY

    def __init__(self, prefix_window: int = HEAD_MESSAGE_WINDOW, threshold: int = 2) -> None:
        if prefix_window < 1:
            raise ValueError(f"prefix_window must be >= 1, got {prefix_window!r}.")
        if threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {threshold!r}.")
        self.prefix_window = prefix_window
        self.threshold = threshold

    @staticmethod
    def _is_parent(candidate: ChatRecord, other: ChatRecord) -> bool:
        if candidate.message_count != other.message_count:
            return candidate.message_count > other.message_count
        return candidate.created_at < other.created_at

    def resolve(self, records: Sequence[ChatRecord]) -> dict[str, str]:
        relations: dict[str, str] = {}
        heads = [record.head_messages[: self.prefix_window] for record in records]

        for i in range(len(records)):
            for j in range(i + 1, len(records)):
                if common_prefix_length(heads[i], heads[j]) < self.threshold:
                    continue
                first, second = records[i], records[j]
                if self._is_parent(first, second):
                    relations[second.record_id] = first.record_id
                else:
                    relations[first.record_id] = second.record_id

        return relations


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def select_resolver(records: Sequence[ChatRecord]) -> RelationResolver:
    """Return the resolver suited to *records*.

    Metadata resolution is used when at least one record carries a parent
    hint; otherwise relations are inferred from message content.
    """
    if any(record.parent_hint for record in records):
        return MetadataResolver()
    return ContentSimilarityResolver()


def resolve_relations(records: Sequence[ChatRecord]) -> dict[str, str]:
    """Select a resolver for *records* and return its relations."""
    resolver = select_resolver(records)
    relations = resolver.resolve(records)
    logger.debug(
        "resolve_relations: %d relation(s) from %d record(s) via %s",
        len(relations),
        len(records),
        resolver.strategy.value,
    )
    return relations
