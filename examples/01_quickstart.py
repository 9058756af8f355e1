#!/usr/bin/env python3
"""Example: Quickstart — chat-lineage

Minimal working example: build a lineage forest from a handful of chat
records and print it as a text tree.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install chat-lineage
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import chat_lineage
from chat_lineage import ChatRecord, build_forest, resolve_relations, visible_nodes
from chat_lineage.tree.ops import connector_prefix


def main() -> None:
    print(f"chat-lineage version: {chat_lineage.__version__}")
    now = datetime.now(timezone.utc)

    # Step 1: Describe the chats; two of them name their parent explicitly
    records = [
        ChatRecord(record_id="adventure", message_count=42, updated_at=now),
        ChatRecord(
            record_id="adventure-alt-ending",
            message_count=30,
            updated_at=now - timedelta(hours=1),
            parent_hint="adventure",
        ),
        ChatRecord(
            record_id="adventure-checkpoint",
            message_count=12,
            updated_at=now - timedelta(hours=2),
            parent_hint="adventure",
            is_checkpoint=True,
        ),
        ChatRecord(record_id="small-talk", message_count=3, updated_at=now - timedelta(days=1)),
    ]

    # Step 2: Resolve parents and build the forest
    relations = resolve_relations(records)
    forest = build_forest(records, relations)
    print(f"Resolved {len(relations)} parent link(s); {len(forest)} tree(s)\n")

    # Step 3: Print every visible row with connector lines
    for tree in forest.trees:
        for entry in visible_nodes(tree):
            record = entry.node.record
            flag = " [checkpoint]" if record.is_checkpoint else ""
            print(f"{connector_prefix(entry)}{record.display_name} ({record.message_count}){flag}")


if __name__ == "__main__":
    main()
