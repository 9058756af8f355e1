"""Test that the short quickstart API works for chat-lineage."""
from __future__ import annotations

import asyncio


def test_quickstart_import() -> None:
    import chat_lineage

    assert chat_lineage.__version__ == "0.1.0"


def test_quickstart_build_forest() -> None:
    from chat_lineage import ChatRecord, build_forest, resolve_relations

    records = [
        ChatRecord(record_id="main", message_count=4),
        ChatRecord(record_id="branch", message_count=2, parent_hint="main"),
    ]
    forest = build_forest(records, resolve_relations(records))
    assert forest.total_count == 2
    assert forest.trees[0].root.node_id == "main"


def test_quickstart_manager() -> None:
    from chat_lineage import CacheManager, ChatManager, ChatRecord, InMemoryRecordSource

    source = InMemoryRecordSource({"alice": [ChatRecord(record_id="hello")]}, owner_key="alice")
    manager = ChatManager(CacheManager(source), source)
    forest = asyncio.run(manager.load())
    assert forest.total_count == 1


def test_quickstart_visible_rows() -> None:
    from chat_lineage import ChatRecord, build_forest, resolve_relations, visible_nodes

    records = [ChatRecord(record_id="a"), ChatRecord(record_id="b", parent_hint="a")]
    rows = list(visible_nodes(build_forest(records, resolve_relations(records))))
    assert [row.node.node_id for row in rows] == ["a", "b"]
