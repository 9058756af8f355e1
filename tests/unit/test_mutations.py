"""Unit tests for chat_lineage.actions.mutations."""
from __future__ import annotations

import logging

import pytest

from chat_lineage.actions.mutations import (
    BatchDeleteResult,
    ChatMutations,
    delete_records,
    normalize_chat_file,
)


class RecordingMutations(ChatMutations):
    """Mutations double that records delete calls and fails on demand."""

    def __init__(self, fail: set[str] | None = None, explode: set[str] | None = None) -> None:
        self.fail = fail or set()
        self.explode = explode or set()
        self.deleted: list[tuple[str, str]] = []

    async def open_record(self, record_id: str) -> bool:
        return True

    async def rename_record(self, record_id: str, new_name: str) -> bool:
        return True

    async def delete_record(self, owner_key: str, file_name: str) -> bool:
        if file_name in self.explode:
            raise ConnectionError("connection reset")
        self.deleted.append((owner_key, file_name))
        return file_name not in self.fail


# ===========================================================================
# normalize_chat_file
# ===========================================================================


class TestNormalizeChatFile:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("chat", "chat.jsonl"),
            ("chat.jsonl", "chat.jsonl"),
            ("chat.jsonl.jsonl", "chat.jsonl"),
            ("chat.json", "chat.json.jsonl"),
        ],
    )
    def test_normalises(self, name: str, expected: str) -> None:
        assert normalize_chat_file(name) == expected


# ===========================================================================
# BatchDeleteResult
# ===========================================================================


class TestBatchDeleteResult:
    def test_all_succeeded(self) -> None:
        result = BatchDeleteResult(success_count=2)
        assert result.total == 2
        assert result.all_succeeded
        assert not result.partial
        assert not result.all_failed

    def test_partial(self) -> None:
        result = BatchDeleteResult(success_count=1, fail_count=1, failed_ids=["x"])
        assert result.partial
        assert not result.all_succeeded

    def test_all_failed(self) -> None:
        assert BatchDeleteResult(fail_count=2).all_failed


# ===========================================================================
# delete_records
# ===========================================================================


class TestDeleteRecords:
    @pytest.mark.asyncio
    async def test_uses_file_name_mapping(self) -> None:
        mutations = RecordingMutations()
        result = await delete_records(
            mutations,
            "alice",
            ["a", "b"],
            {"a": "Alice - a.jsonl"},
            interval=0,
        )
        assert result.success_count == 2
        assert mutations.deleted == [("alice", "Alice - a.jsonl"), ("alice", "b.jsonl")]

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_batch(self) -> None:
        mutations = RecordingMutations(fail={"b.jsonl"}, explode={"c.jsonl"})
        result = await delete_records(mutations, "alice", ["a", "b", "c", "d"], interval=0)

        assert result.success_count == 2
        assert result.fail_count == 2
        assert result.failed_ids == ["b", "c"]
        assert result.partial
        assert [name for _, name in mutations.deleted] == ["a.jsonl", "b.jsonl", "d.jsonl"]

    @pytest.mark.asyncio
    async def test_failures_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        mutations = RecordingMutations(explode={"a.jsonl"})
        with caplog.at_level(logging.WARNING, logger="chat_lineage.actions.mutations"):
            result = await delete_records(mutations, "alice", ["a"], interval=0)
        assert result.all_failed
        assert "1 failed" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        result = await delete_records(RecordingMutations(), "alice", [])
        assert result.total == 0
        assert result.all_succeeded

    @pytest.mark.asyncio
    async def test_interval_between_items(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pauses: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            pauses.append(seconds)

        monkeypatch.setattr("chat_lineage.actions.mutations.asyncio.sleep", fake_sleep)
        await delete_records(RecordingMutations(), "alice", ["a", "b", "c"], interval=0.25)
        assert pauses == [0.25, 0.25, 0.25]

    @pytest.mark.asyncio
    async def test_no_interval_for_single_item(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pauses: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            pauses.append(seconds)

        monkeypatch.setattr("chat_lineage.actions.mutations.asyncio.sleep", fake_sleep)
        await delete_records(RecordingMutations(), "alice", ["a"], interval=0.25)
        assert pauses == []
