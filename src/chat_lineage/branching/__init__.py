"""Branch relation resolution for chat records.

Classes
-------
RelationResolver
    Shared interface returning a child id → parent id mapping.
MetadataResolver
    Resolves parent hints carried by the records.
ContentSimilarityResolver
    Infers relations from identical opening messages.
"""
from __future__ import annotations

from chat_lineage.branching.resolver import (
    ContentSimilarityResolver,
    MetadataResolver,
    RelationResolver,
    RelationStrategy,
    common_prefix_length,
    resolve_relations,
    select_resolver,
)

__all__ = [
    "ContentSimilarityResolver",
    "MetadataResolver",
    "RelationResolver",
    "RelationStrategy",
    "common_prefix_length",
    "resolve_relations",
    "select_resolver",
]
