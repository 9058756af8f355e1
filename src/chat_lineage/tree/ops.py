"""Traversal utilities over built forests and trees.

Selection and expansion helpers always walk the full scope, ignoring
collapse state.  :func:`visible_nodes` is the only traversal that honours
expansion; it yields the rows a tree view shows together with the data
needed to draw connector lines.

Functions
---------
- selected_nodes     — every selected node in scope
- set_all_selected   — set the selected flag on every node in scope
- set_all_expanded   — set the expanded flag on every node (and tree header)
- count_nodes        — total node count
- visible_nodes      — lazy pre-order rows honouring expansion
- connector_prefix   — box-drawing prefix for one visible row
"""
from __future__ import annotations

from typing import Iterator, NamedTuple

from chat_lineage.tree.nodes import ChatForest, ChatTree, NodeScope, TreeNode


class VisibleNode(NamedTuple):
    """One visible row.

    Attributes
    ----------
    node:
        The node shown on this row.
    is_last:
        Whether the node is the last among its siblings.
    continuations:
        One flag per ancestor, root first; a flag is True when that ancestor
        is not the last among its own siblings, meaning a vertical connector
        continues past its column.
    """

    node: TreeNode
    is_last: bool
    continuations: tuple[bool, ...]


def selected_nodes(scope: NodeScope) -> list[TreeNode]:
    """Return every selected node in *scope*, including under collapsed nodes."""
    return [node for node in scope.iter_nodes() if node.selected]


def set_all_selected(scope: NodeScope, selected: bool) -> None:
    """Set ``selected`` on every node in *scope*."""
    for node in scope.iter_nodes():
        node.selected = selected


def set_all_expanded(scope: NodeScope, expanded: bool) -> None:
    """Set ``expanded`` on every node in *scope*.

    Tree headers are updated as well when *scope* is a forest or a tree.
    """
    if isinstance(scope, ChatForest):
        for tree in scope.trees:
            tree.expanded = expanded
    elif isinstance(scope, ChatTree):
        scope.expanded = expanded
    for node in scope.iter_nodes():
        node.expanded = expanded


def count_nodes(scope: NodeScope) -> int:
    """Return the number of nodes in *scope*."""
    return sum(1 for _ in scope.iter_nodes())


class VisibleNodes:
    """Restartable iterable over the visible rows of a scope.

    Each call to ``iter()`` starts a fresh depth-first pre-order walk that
    descends into a node's children only when the node is expanded.  For a
    :class:`ChatTree` with a collapsed header only the root is visible.
    """

    def __init__(self, scope: NodeScope) -> None:
        self._scope = scope

    def __iter__(self) -> Iterator[VisibleNode]:
        scope = self._scope
        arena = scope.arena
        header_open = not isinstance(scope, ChatTree) or scope.expanded

        roots = scope.root_nodes()
        stack: list[tuple[TreeNode, bool, tuple[bool, ...]]] = [
            (root, index == len(roots) - 1, ()) for index, root in enumerate(roots)
        ]
        stack.reverse()

        while stack:
            node, is_last, continuations = stack.pop()
            yield VisibleNode(node, is_last, continuations)

            if not node.expanded or not header_open or not node.child_ids:
                continue
            child_continuations = continuations + (not is_last,)
            children = arena.children(node)
            for index in range(len(children) - 1, -1, -1):
                stack.append((children[index], index == len(children) - 1, child_continuations))

    def __repr__(self) -> str:
        return f"VisibleNodes(scope={type(self._scope).__name__})"


def visible_nodes(scope: NodeScope) -> VisibleNodes:
    """Return the lazy, restartable visible-row sequence of *scope*."""
    return VisibleNodes(scope)


def connector_prefix(entry: VisibleNode, *, include_root_column: bool = False) -> str:
    """Render the box-drawing prefix for *entry*.

    Parameters
    ----------
    entry:
        A row produced by :func:`visible_nodes`.
    include_root_column:
        When False (default) roots get no connector and the root column is
        omitted, the usual layout for a list of independent trees.
    """
    columns = entry.continuations if include_root_column else entry.continuations[1:]
    prefix = "".join("│   " if keep_going else "    " for keep_going in columns)
    if entry.node.depth == 0 and not include_root_column:
        return prefix
    return prefix + ("└── " if entry.is_last else "├── ")


__all__ = [
    "VisibleNode",
    "VisibleNodes",
    "connector_prefix",
    "count_nodes",
    "selected_nodes",
    "set_all_expanded",
    "set_all_selected",
    "visible_nodes",
]
