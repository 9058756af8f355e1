#!/usr/bin/env python3
"""Example: Cached manager — chat-lineage

Loads chats through the stale-while-revalidate cache, serves a second load
from cache while a background refresh picks up a new chat, then deletes a
selected chat.

Usage:
    python examples/02_cached_manager.py

Requirements:
    pip install chat-lineage
"""
from __future__ import annotations

import asyncio

from chat_lineage import CacheManager, ChatManager, ChatRecord, InMemoryRecordSource


async def main() -> None:
    # Step 1: An in-memory source with one owner's chats
    source = InMemoryRecordSource(
        {
            "Alice": [
                ChatRecord(record_id="story", message_count=20, is_current=True),
                ChatRecord(record_id="story-branch", message_count=8, parent_hint="story"),
            ]
        },
        owner_key="Alice",
    )
    cache = CacheManager(source)
    manager = ChatManager(cache, source, delete_interval=0.0, settle_delay=0.0)

    # Step 2: First load fetches in the foreground
    forest = await manager.load()
    print(f"Loaded {forest.total_count} chat(s); cache state: {cache.state.value}")

    # Step 3: A new chat appears; the next load is served from cache and
    # the background refresh picks up the change
    source.set_records(
        "Alice",
        [
            ChatRecord(record_id="story", message_count=20, is_current=True),
            ChatRecord(record_id="story-branch", message_count=8, parent_hint="story"),
            ChatRecord(record_id="fresh-start", message_count=1),
        ],
    )
    forest = await manager.load()
    print(f"Served from cache: {forest.total_count} chat(s)")
    await cache.wait_for_refresh()
    print(f"After background refresh: {manager.total_count} chat(s)")

    # Step 4: Select a chat and delete it
    manager.forest.arena["story-branch"].selected = True
    result = await manager.delete_selected()
    if result is not None:
        print(f"Deleted {result.success_count}, failed {result.fail_count}")
    print(f"Remaining: {[r.record_id for r in manager.records]}")

    await cache.aclose()


if __name__ == "__main__":
    asyncio.run(main())
