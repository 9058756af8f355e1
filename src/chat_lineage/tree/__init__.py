"""Lineage trees: nodes, forest building, and traversal utilities.

Classes
-------
ForestBuilder
    Builds a ChatForest or FlatTree from records and relations.
ChatForest
    Ordered trees covering every record exactly once.
ChatTree
    One lineage group with aggregated statistics.
TreeNode
    One record plus transient view state.
"""
from __future__ import annotations

from chat_lineage.tree.builder import AUTO_EXPAND_MAX_NODES, ForestBuilder, build_forest
from chat_lineage.tree.nodes import (
    ChatForest,
    ChatTree,
    FlatTree,
    NodeArena,
    NodeScope,
    Subtree,
    TreeNode,
)
from chat_lineage.tree.ops import (
    VisibleNode,
    VisibleNodes,
    connector_prefix,
    count_nodes,
    selected_nodes,
    set_all_expanded,
    set_all_selected,
    visible_nodes,
)

__all__ = [
    "AUTO_EXPAND_MAX_NODES",
    "ChatForest",
    "ChatTree",
    "FlatTree",
    "ForestBuilder",
    "NodeArena",
    "NodeScope",
    "Subtree",
    "TreeNode",
    "VisibleNode",
    "VisibleNodes",
    "build_forest",
    "connector_prefix",
    "count_nodes",
    "selected_nodes",
    "set_all_expanded",
    "set_all_selected",
    "visible_nodes",
]
