"""Tree and forest containers for chat lineage display.

Nodes are stored in a flat :class:`NodeArena` keyed by record id.  Each
node holds its parent id and an ordered list of child ids, so ancestor
walks are table lookups and no subtree object is ever shared between two
parents.

Classes
-------
- TreeNode    — one record plus transient view state
- NodeArena   — id-keyed node table with traversal helpers
- NodeScope   — protocol implemented by every traversable container
- ChatTree    — one lineage group with aggregated statistics
- ChatForest  — ordered trees over one arena
- FlatTree    — ordered root list (flat-list mode)
- Subtree     — the subtree under one node of an arena
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Protocol

from chat_lineage.records.models import ChatRecord

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(eq=False)
class TreeNode:
    """A single record in a lineage tree.

    ``depth``, ``expanded`` and ``selected`` are view state only; they are
    never persisted and are reset whenever the tree is rebuilt.
    """

    record: ChatRecord
    depth: int = 0
    expanded: bool = False
    selected: bool = False
    parent_id: str | None = None
    child_ids: list[str] = field(default_factory=list)

    @property
    def node_id(self) -> str:
        """The wrapped record's id."""
        return self.record.record_id

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return (
            f"TreeNode(id={self.node_id!r}, depth={self.depth}, "
            f"children={len(self.child_ids)})"
        )


class NodeArena:
    """Flat table of :class:`TreeNode` objects keyed by record id."""

    def __init__(self) -> None:
        self._nodes: dict[str, TreeNode] = {}

    def add(self, node: TreeNode) -> None:
        """Insert *node*.

        Raises
        ------
        ValueError
            If a node with the same id is already present.
        """
        if node.node_id in self._nodes:
            raise ValueError(f"Duplicate node id {node.node_id!r}.")
        self._nodes[node.node_id] = node

    def get(self, node_id: str) -> TreeNode | None:
        return self._nodes.get(node_id)

    def __getitem__(self, node_id: str) -> TreeNode:
        return self._nodes[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self._nodes.values())

    def children(self, node: TreeNode) -> list[TreeNode]:
        """Return the child nodes of *node* in order."""
        return [self._nodes[child_id] for child_id in node.child_ids]

    def ancestor_ids(self, node_id: str) -> Iterator[str]:
        """Yield the ids of the ancestors of *node_id*, nearest first.

        The walk stops if it revisits an id, so a corrupted table cannot
        loop forever.
        """
        seen = {node_id}
        current = self._nodes[node_id].parent_id
        while current is not None and current not in seen:
            yield current
            seen.add(current)
            parent = self._nodes.get(current)
            current = parent.parent_id if parent is not None else None

    def walk(self, root: TreeNode) -> Iterator[TreeNode]:
        """Yield *root* and all its descendants in pre-order, ignoring expansion."""
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(self.children(node)))

    def __repr__(self) -> str:
        return f"NodeArena(nodes={len(self._nodes)})"


class NodeScope(Protocol):
    """Anything traversal utilities can operate on."""

    arena: NodeArena

    def root_nodes(self) -> list[TreeNode]: ...

    def iter_nodes(self) -> Iterator[TreeNode]: ...


class _ScopeMixin:
    arena: NodeArena

    def root_nodes(self) -> list[TreeNode]:
        raise NotImplementedError

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Yield every node in scope in pre-order, regardless of expansion."""
        for root in self.root_nodes():
            yield from self.arena.walk(root)


@dataclass(eq=False)
class ChatTree(_ScopeMixin):
    """One lineage group: a root node plus aggregates over its subtree.

    Parameters
    ----------
    root:
        The tree's root node.
    arena:
        The node table the tree lives in.
    node_count:
        Number of nodes in the subtree, root included.
    latest_update:
        Most recent ``updated_at`` across the subtree.
    has_current:
        Whether any node in the subtree is the active chat.
    expanded:
        Header expansion state.
    """

    root: TreeNode
    arena: NodeArena
    node_count: int = 1
    latest_update: datetime = _EPOCH
    has_current: bool = False
    expanded: bool = True

    def root_nodes(self) -> list[TreeNode]:
        return [self.root]

    def summary_line(self) -> str:
        """Return a one-line human-readable description."""
        marker = " *" if self.has_current else ""
        return (
            f"Tree[{self.root.record.display_name}] nodes={self.node_count} "
            f"latest={self.latest_update:%Y-%m-%d %H:%M}{marker}"
        )


@dataclass(eq=False)
class ChatForest(_ScopeMixin):
    """Ordered lineage trees covering every record exactly once."""

    trees: list[ChatTree] = field(default_factory=list)
    arena: NodeArena = field(default_factory=NodeArena)
    total_count: int = 0

    def root_nodes(self) -> list[TreeNode]:
        return [tree.root for tree in self.trees]

    def find(self, node_id: str) -> TreeNode | None:
        """Return the node for *node_id*, or None."""
        return self.arena.get(node_id)

    def __len__(self) -> int:
        return len(self.trees)

    def __repr__(self) -> str:
        return f"ChatForest(trees={len(self.trees)}, total_count={self.total_count})"


@dataclass(eq=False)
class FlatTree(_ScopeMixin):
    """Ordered root nodes over one arena, without per-tree aggregates."""

    roots: list[TreeNode] = field(default_factory=list)
    arena: NodeArena = field(default_factory=NodeArena)

    def root_nodes(self) -> list[TreeNode]:
        return list(self.roots)


@dataclass(eq=False)
class Subtree(_ScopeMixin):
    """The subtree rooted at *root_id* within *arena*."""

    arena: NodeArena
    root_id: str

    def root_nodes(self) -> list[TreeNode]:
        return [self.arena[self.root_id]]


__all__ = [
    "ChatForest",
    "ChatTree",
    "FlatTree",
    "NodeArena",
    "NodeScope",
    "Subtree",
    "TreeNode",
]
