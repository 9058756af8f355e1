"""chat-lineage — Branch lineage, checkpoints, and cached listings for chat sessions.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import chat_lineage
>>> chat_lineage.__version__
'0.1.0'
"""
from __future__ import annotations

# Records
from chat_lineage.records.models import (
    ChatRecord,
    ManagerSettings,
    SortConfig,
    SortKey,
    SortOrder,
)
from chat_lineage.records.filtering import filter_records, sort_records
from chat_lineage.records.parser import build_record

# Branch resolution
from chat_lineage.branching.resolver import (
    ContentSimilarityResolver,
    MetadataResolver,
    RelationResolver,
    RelationStrategy,
    resolve_relations,
    select_resolver,
)

# Trees
from chat_lineage.tree.nodes import ChatForest, ChatTree, FlatTree, NodeArena, Subtree, TreeNode
from chat_lineage.tree.builder import ForestBuilder, build_forest
from chat_lineage.tree.ops import (
    VisibleNode,
    count_nodes,
    selected_nodes,
    set_all_expanded,
    set_all_selected,
    visible_nodes,
)

# Sources and mutations
from chat_lineage.sources.base import RecordSource
from chat_lineage.sources.memory import InMemoryRecordSource
from chat_lineage.sources.filesystem import FilesystemRecordSource
from chat_lineage.actions.mutations import BatchDeleteResult, ChatMutations, delete_records

# Cache and manager
from chat_lineage.cache.manager import CacheManager, CacheState, RecordFetchError
from chat_lineage.manager.chat_manager import ChatManager

# Configuration
from chat_lineage.config import SettingsError, load_settings

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Records
    "ChatRecord",
    "ManagerSettings",
    "SortConfig",
    "SortKey",
    "SortOrder",
    "build_record",
    "filter_records",
    "sort_records",
    # Branch resolution
    "ContentSimilarityResolver",
    "MetadataResolver",
    "RelationResolver",
    "RelationStrategy",
    "resolve_relations",
    "select_resolver",
    # Trees
    "ChatForest",
    "ChatTree",
    "FlatTree",
    "ForestBuilder",
    "NodeArena",
    "Subtree",
    "TreeNode",
    "VisibleNode",
    "build_forest",
    "count_nodes",
    "selected_nodes",
    "set_all_expanded",
    "set_all_selected",
    "visible_nodes",
    # Sources and mutations
    "BatchDeleteResult",
    "ChatMutations",
    "FilesystemRecordSource",
    "InMemoryRecordSource",
    "RecordSource",
    "delete_records",
    # Cache and manager
    "CacheManager",
    "CacheState",
    "ChatManager",
    "RecordFetchError",
    # Configuration
    "SettingsError",
    "load_settings",
]
