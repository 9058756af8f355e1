"""Build lineage forests from flat record lists.

Design
------
:class:`ForestBuilder` sorts the records, creates one :class:`TreeNode` per
record in a :class:`NodeArena`, and attaches every record whose resolved
parent is present.  Before attaching, the prospective parent's ancestor
chain is walked; if the node already appears in it the relation would
close a cycle, so the node stays a root instead.

Two output shapes are supported:

- ``build_forest`` — a :class:`ChatForest` of trees with aggregated
  statistics, nodes expanded by default, children ordered newest first.
- ``build_flat`` — a :class:`FlatTree` root list, nodes collapsed by
  default, children ordered by the configured sort.

Building never raises for well-formed records; bad relations degrade to
roots.

Usage
-----
::

    from chat_lineage.branching import resolve_relations
    from chat_lineage.tree import ForestBuilder

    forest = ForestBuilder(sort_config).build_forest(records, resolve_relations(records))
"""
from __future__ import annotations

import logging
from typing import Mapping, Sequence

from chat_lineage.records.filtering import sort_key_for, sort_records
from chat_lineage.records.models import ChatRecord, SortConfig, SortKey, SortOrder
from chat_lineage.tree.nodes import ChatForest, ChatTree, FlatTree, NodeArena, TreeNode

logger = logging.getLogger(__name__)

AUTO_EXPAND_MAX_NODES: int = 5

_NEWEST_FIRST = SortConfig(by=SortKey.UPDATED_AT, order=SortOrder.DESC)


class ForestBuilder:
    """Turn records plus a parent mapping into trees.

    Parameters
    ----------
    sort_config:
        Sort applied to the records before building, and to siblings in
        flat mode.  Defaults to ``updated_at`` descending.
    """

    def __init__(self, sort_config: SortConfig | None = None) -> None:
        self.sort_config = sort_config or SortConfig()

    # ------------------------------------------------------------------
    # Public builders
    # ------------------------------------------------------------------

    def build_forest(
        self,
        records: Sequence[ChatRecord],
        relations: Mapping[str, str],
    ) -> ChatForest:
        """Build a :class:`ChatForest` from *records* and *relations*.

        Parameters
        ----------
        records:
            Records to place.  Ids must be unique.
        relations:
            Child id → parent id mapping; entries naming unknown ids are
            ignored.

        Returns
        -------
        ChatForest
            Trees holding the current chat come first, the rest ordered by
            their most recent update.
        """
        arena, roots = self._assemble(records, relations, expanded=True)
        self._order_children(arena, roots, _NEWEST_FIRST)

        trees = [self._summarise(arena, root) for root in roots]
        # Two stable passes: recency first, then current-chat trees on top.
        trees.sort(key=lambda tree: tree.latest_update, reverse=True)
        trees.sort(key=lambda tree: tree.has_current, reverse=True)

        forest = ChatForest(trees=trees, arena=arena, total_count=len(arena))
        logger.debug("ForestBuilder: built %r", forest)
        return forest

    def build_flat(
        self,
        records: Sequence[ChatRecord],
        relations: Mapping[str, str],
    ) -> FlatTree:
        """Build a :class:`FlatTree` with nodes collapsed by default."""
        arena, roots = self._assemble(records, relations, expanded=False)
        self._order_children(arena, roots, self.sort_config)
        return FlatTree(roots=roots, arena=arena)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _assemble(
        self,
        records: Sequence[ChatRecord],
        relations: Mapping[str, str],
        *,
        expanded: bool,
    ) -> tuple[NodeArena, list[TreeNode]]:
        ordered = sort_records(records, self.sort_config)

        arena = NodeArena()
        for record in ordered:
            arena.add(TreeNode(record=record, expanded=expanded))

        roots: list[TreeNode] = []
        for record in ordered:
            node = arena[record.record_id]
            parent_id = relations.get(record.record_id)
            if parent_id is not None and self._can_attach(arena, node, parent_id):
                node.parent_id = parent_id
                arena[parent_id].child_ids.append(node.node_id)
            else:
                roots.append(node)

        for root in roots:
            self._assign_depths(arena, root)

        return arena, roots

    @staticmethod
    def _can_attach(arena: NodeArena, node: TreeNode, parent_id: str) -> bool:
        if parent_id not in arena or parent_id == node.node_id:
            return False
        if node.node_id in arena.ancestor_ids(parent_id):
            logger.debug(
                "ForestBuilder: refusing %r -> %r, relation would form a cycle",
                node.node_id,
                parent_id,
            )
            return False
        return True

    @staticmethod
    def _assign_depths(arena: NodeArena, root: TreeNode) -> None:
        root.depth = 0
        stack = [root]
        while stack:
            node = stack.pop()
            for child in arena.children(node):
                child.depth = node.depth + 1
                stack.append(child)

    @staticmethod
    def _order_children(arena: NodeArena, roots: list[TreeNode], config: SortConfig) -> None:
        key = sort_key_for(config.by)
        reverse = config.order is SortOrder.DESC
        for root in roots:
            for node in arena.walk(root):
                if len(node.child_ids) > 1:
                    node.child_ids.sort(key=lambda child_id: key(arena[child_id].record), reverse=reverse)

    @staticmethod
    def _summarise(arena: NodeArena, root: TreeNode) -> ChatTree:
        node_count = 0
        latest_update = root.record.updated_at
        has_current = False

        for node in arena.walk(root):
            node_count += 1
            if node.record.updated_at > latest_update:
                latest_update = node.record.updated_at
            has_current = has_current or node.record.is_current

        return ChatTree(
            root=root,
            arena=arena,
            node_count=node_count,
            latest_update=latest_update,
            has_current=has_current,
            expanded=has_current or node_count <= AUTO_EXPAND_MAX_NODES,
        )


def build_forest(
    records: Sequence[ChatRecord],
    relations: Mapping[str, str],
    sort_config: SortConfig | None = None,
) -> ChatForest:
    """Convenience wrapper around :meth:`ForestBuilder.build_forest`."""
    return ForestBuilder(sort_config).build_forest(records, relations)


__all__ = ["AUTO_EXPAND_MAX_NODES", "ForestBuilder", "build_forest"]
