"""Unit tests for chat_lineage.tree.nodes and chat_lineage.tree.ops."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chat_lineage.branching.resolver import resolve_relations
from chat_lineage.records.models import ChatRecord
from chat_lineage.tree.builder import ForestBuilder, build_forest
from chat_lineage.tree.nodes import ChatForest, NodeArena, Subtree, TreeNode
from chat_lineage.tree.ops import (
    VisibleNode,
    connector_prefix,
    count_nodes,
    selected_nodes,
    set_all_expanded,
    set_all_selected,
    visible_nodes,
)

T0 = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _record(record_id: str, hours: int = 0, **kwargs: object) -> ChatRecord:
    return ChatRecord(record_id=record_id, updated_at=T0 + timedelta(hours=hours), **kwargs)


@pytest.fixture()
def forest() -> ChatForest:
    """Two trees: root(a, b(b1)) newer than lone."""
    records = [
        _record("root", 10),
        _record("a", 9, parent_hint="root"),
        _record("b", 8, parent_hint="root"),
        _record("b1", 7, parent_hint="b"),
        _record("lone", 1),
    ]
    return build_forest(records, resolve_relations(records))


# ===========================================================================
# NodeArena
# ===========================================================================


class TestNodeArena:
    def test_duplicate_rejected(self) -> None:
        arena = NodeArena()
        arena.add(TreeNode(record=_record("x")))
        with pytest.raises(ValueError, match="Duplicate"):
            arena.add(TreeNode(record=_record("x")))

    def test_lookup(self) -> None:
        arena = NodeArena()
        node = TreeNode(record=_record("x"))
        arena.add(node)
        assert "x" in arena
        assert arena["x"] is node
        assert arena.get("missing") is None
        assert len(arena) == 1

    def test_ancestor_ids_nearest_first(self, forest: ChatForest) -> None:
        assert list(forest.arena.ancestor_ids("b1")) == ["b", "root"]
        assert list(forest.arena.ancestor_ids("root")) == []

    def test_ancestor_walk_terminates_on_loop(self) -> None:
        arena = NodeArena()
        arena.add(TreeNode(record=_record("x"), parent_id="y"))
        arena.add(TreeNode(record=_record("y"), parent_id="x"))
        assert list(arena.ancestor_ids("x")) == ["y"]


# ===========================================================================
# Selection / expansion
# ===========================================================================


class TestSelection:
    def test_selection_ignores_collapse(self, forest: ChatForest) -> None:
        forest.arena["b1"].selected = True
        set_all_expanded(forest, False)
        assert [n.node_id for n in selected_nodes(forest)] == ["b1"]

    def test_set_all_selected(self, forest: ChatForest) -> None:
        set_all_selected(forest, True)
        assert len(selected_nodes(forest)) == forest.total_count
        set_all_selected(forest, False)
        assert selected_nodes(forest) == []

    def test_selection_independent_of_expansion(self, forest: ChatForest) -> None:
        set_all_selected(forest, True)
        set_all_expanded(forest, False)
        assert all(node.selected for node in forest.iter_nodes())

    def test_subtree_scope(self, forest: ChatForest) -> None:
        set_all_selected(Subtree(forest.arena, "b"), True)
        assert sorted(n.node_id for n in selected_nodes(forest)) == ["b", "b1"]


class TestExpansion:
    def test_updates_nodes_and_headers(self, forest: ChatForest) -> None:
        set_all_expanded(forest, False)
        assert not any(tree.expanded for tree in forest.trees)
        assert not any(node.expanded for node in forest.iter_nodes())

        set_all_expanded(forest, True)
        assert all(tree.expanded for tree in forest.trees)
        assert all(node.expanded for node in forest.iter_nodes())

    def test_single_tree_header(self, forest: ChatForest) -> None:
        tree = forest.trees[0]
        set_all_expanded(tree, False)
        assert tree.expanded is False
        assert forest.trees[1].expanded is True


# ===========================================================================
# Counting
# ===========================================================================


class TestCountNodes:
    def test_matches_totals(self, forest: ChatForest) -> None:
        assert count_nodes(forest) == forest.total_count == 5
        assert sum(tree.node_count for tree in forest.trees) == 5

    def test_counts_ignore_collapse(self, forest: ChatForest) -> None:
        set_all_expanded(forest, False)
        assert count_nodes(forest) == 5
        assert count_nodes(forest.trees[0]) == 4


# ===========================================================================
# Visible rows
# ===========================================================================


class TestVisibleNodes:
    def test_preorder_when_expanded(self, forest: ChatForest) -> None:
        rows = list(visible_nodes(forest))
        assert [row.node.node_id for row in rows] == ["root", "a", "b", "b1", "lone"]

    def test_is_last_flags(self, forest: ChatForest) -> None:
        rows = {row.node.node_id: row for row in visible_nodes(forest)}
        assert rows["a"].is_last is False
        assert rows["b"].is_last is True
        assert rows["b1"].is_last is True
        assert rows["root"].is_last is False
        assert rows["lone"].is_last is True

    def test_continuations(self, forest: ChatForest) -> None:
        rows = {row.node.node_id: row for row in visible_nodes(forest)}
        assert rows["root"].continuations == ()
        assert rows["a"].continuations == (True,)
        assert rows["b1"].continuations == (True, False)

    def test_collapsed_node_hides_descendants(self, forest: ChatForest) -> None:
        forest.arena["b"].expanded = False
        ids = [row.node.node_id for row in visible_nodes(forest)]
        assert ids == ["root", "a", "b", "lone"]

    def test_collapsed_tree_header_shows_root_only(self, forest: ChatForest) -> None:
        tree = forest.trees[0]
        tree.expanded = False
        assert [row.node.node_id for row in visible_nodes(tree)] == ["root"]

    def test_restartable(self, forest: ChatForest) -> None:
        rows = visible_nodes(forest)
        first = [row.node.node_id for row in rows]
        second = [row.node.node_id for row in rows]
        assert first == second

    def test_lazy(self, forest: ChatForest) -> None:
        iterator = iter(visible_nodes(forest))
        assert next(iterator).node.node_id == "root"

    def test_flat_tree_starts_collapsed(self) -> None:
        records = [_record("p"), _record("c", parent_hint="p")]
        flat = ForestBuilder().build_flat(records, resolve_relations(records))
        assert [row.node.node_id for row in visible_nodes(flat)] == ["p"]


class TestConnectorPrefix:
    def test_rows(self, forest: ChatForest) -> None:
        rows = {row.node.node_id: row for row in visible_nodes(forest.trees[0])}
        assert connector_prefix(rows["root"]) == ""
        assert connector_prefix(rows["a"]) == "├── "
        assert connector_prefix(rows["b"]) == "└── "
        assert connector_prefix(rows["b1"]) == "    └── "

    def test_vertical_line_continues(self) -> None:
        records = [
            _record("r", 9),
            _record("x", 8, parent_hint="r"),
            _record("x1", 7, parent_hint="x"),
            _record("y", 6, parent_hint="r"),
        ]
        forest = build_forest(records, resolve_relations(records))
        rows = {row.node.node_id: row for row in visible_nodes(forest)}
        assert connector_prefix(rows["x1"]) == "│   └── "

    def test_include_root_column(self) -> None:
        entry = VisibleNode(TreeNode(record=_record("r")), True, ())
        assert connector_prefix(entry, include_root_column=True) == "└── "
