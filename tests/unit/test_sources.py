"""Unit tests for chat_lineage.sources (filesystem and in-memory)."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from chat_lineage.records.models import ChatRecord
from chat_lineage.sources.filesystem import FilesystemRecordSource, read_chat_messages
from chat_lineage.sources.memory import InMemoryRecordSource


def _write_chat(path: Path, messages: list[dict], header: dict | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = []
    if header is not None:
        lines.append(json.dumps(header))
    lines.extend(json.dumps(message) for message in messages)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def chats_dir(tmp_path: Path) -> Path:
    owner = tmp_path / "Alice"
    _write_chat(
        owner / "Alice - 2024-12-28@10h30m45s.jsonl",
        [{"mes": "hello"}, {"mes": "world"}],
        header={"user_name": "me", "chat_metadata": {}},
    )
    _write_chat(
        owner / "Alice - side_branch_from_Alice - 2024-12-28@10h30m45s.jsonl",
        [{"mes": "hello"}],
    )
    _write_chat(owner / "Alice - empty.jsonl", [], header={"chat_metadata": {}})
    (owner / "notes.txt").write_text("not a chat", encoding="utf-8")
    return tmp_path


# ===========================================================================
# read_chat_messages
# ===========================================================================


class TestReadChatMessages:
    def test_skips_header(self, tmp_path: Path) -> None:
        path = _write_chat(tmp_path / "c.jsonl", [{"mes": "a"}], header={"chat_metadata": {}})
        assert read_chat_messages(path) == [{"mes": "a"}]

    def test_first_line_message_kept(self, tmp_path: Path) -> None:
        path = _write_chat(tmp_path / "c.jsonl", [{"mes": "a"}, {"mes": "b"}])
        assert [m["mes"] for m in read_chat_messages(path)] == ["a", "b"]

    def test_bad_lines_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "c.jsonl"
        path.write_text('{"mes": "a"}\nnot json\n[1, 2]\n\n{"mes": "b"}\n', encoding="utf-8")
        assert [m["mes"] for m in read_chat_messages(path)] == ["a", "b"]


# ===========================================================================
# FilesystemRecordSource
# ===========================================================================


class TestFilesystemRecordSource:
    @pytest.mark.asyncio
    async def test_fetch(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(
            chats_dir, "Alice", current_file="Alice - 2024-12-28@10h30m45s"
        )
        records = await source.fetch(50)

        by_id = {record.record_id: record for record in records}
        assert set(by_id) == {
            "Alice - 2024-12-28@10h30m45s",
            "Alice - side_branch_from_Alice - 2024-12-28@10h30m45s",
        }
        main = by_id["Alice - 2024-12-28@10h30m45s"]
        assert main.message_count == 2
        assert main.is_current is True
        branch = by_id["Alice - side_branch_from_Alice - 2024-12-28@10h30m45s"]
        assert branch.parent_hint == "Alice - 2024-12-28@10h30m45s"

    @pytest.mark.asyncio
    async def test_no_owner(self, chats_dir: Path) -> None:
        assert await FilesystemRecordSource(chats_dir, None).fetch(50) == []

    @pytest.mark.asyncio
    async def test_undecodable_file_skipped(
        self, chats_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (chats_dir / "Alice" / "Alice - broken.jsonl").write_bytes(b'{"mes": "\xff\xfe"}\n')
        source = FilesystemRecordSource(chats_dir, "Alice")

        with caplog.at_level(logging.WARNING, logger="chat_lineage.sources.filesystem"):
            records = await source.fetch(50)

        assert len(records) == 2
        assert "Alice - broken" not in {record.record_id for record in records}
        assert "Alice - broken.jsonl" in caplog.text

    @pytest.mark.asyncio
    async def test_non_dict_extra_tolerated(self, tmp_path: Path) -> None:
        _write_chat(tmp_path / "Bob" / "odd.jsonl", [{"mes": "hi", "extra": "oops"}])
        records = await FilesystemRecordSource(tmp_path, "Bob").fetch(50)
        assert [record.record_id for record in records] == ["odd"]

    @pytest.mark.asyncio
    async def test_missing_owner_dir(self, chats_dir: Path) -> None:
        assert await FilesystemRecordSource(chats_dir, "Bob").fetch(50) == []

    @pytest.mark.asyncio
    async def test_open_record(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(chats_dir, "Alice")
        assert await source.open_record("Alice - empty") is True
        assert source.current_file == "Alice - empty"
        assert await source.open_record("ghost") is False

    @pytest.mark.asyncio
    async def test_rename_record(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(chats_dir, "Alice", current_file="Alice - empty")
        assert await source.rename_record("Alice - empty", "Renamed") is True
        assert (chats_dir / "Alice" / "Renamed.jsonl").exists()
        assert not (chats_dir / "Alice" / "Alice - empty.jsonl").exists()
        assert source.current_file == "Renamed"

    @pytest.mark.asyncio
    async def test_rename_refuses_overwrite(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(chats_dir, "Alice")
        assert (
            await source.rename_record("Alice - empty", "Alice - 2024-12-28@10h30m45s") is False
        )

    @pytest.mark.asyncio
    async def test_rename_blank_name(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(chats_dir, "Alice")
        assert await source.rename_record("Alice - empty", "   ") is False

    @pytest.mark.asyncio
    async def test_delete_record(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(chats_dir, "Alice")
        assert await source.delete_record("Alice", "Alice - empty.jsonl") is True
        assert not (chats_dir / "Alice" / "Alice - empty.jsonl").exists()
        assert await source.delete_record("Alice", "Alice - empty.jsonl") is False

    @pytest.mark.asyncio
    async def test_owner_path_traversal_rejected(self, chats_dir: Path) -> None:
        outside = _write_chat(chats_dir / "outside.jsonl", [{"mes": "x"}])
        source = FilesystemRecordSource(chats_dir / "Alice", "Alice")
        with pytest.raises(ValueError, match="Invalid owner"):
            await source.delete_record("..", "outside.jsonl")
        assert outside.exists()

    @pytest.mark.asyncio
    async def test_file_name_traversal_contained(self, chats_dir: Path) -> None:
        outside = _write_chat(chats_dir / "outside.jsonl", [{"mes": "x"}])
        source = FilesystemRecordSource(chats_dir, "Alice")
        assert await source.delete_record("Alice", "../outside.jsonl") is False
        assert outside.exists()

    def test_switch_owner(self, chats_dir: Path) -> None:
        source = FilesystemRecordSource(chats_dir, "Alice", current_file="x")
        source.switch_owner("Bob")
        assert source.owner_key == "Bob"
        assert source.current_file is None


# ===========================================================================
# InMemoryRecordSource
# ===========================================================================


class TestInMemoryRecordSource:
    @pytest.mark.asyncio
    async def test_fetch_returns_copies(self) -> None:
        original = ChatRecord(record_id="a", first_message_preview="abcdef")
        source = InMemoryRecordSource({"alice": [original]}, owner_key="alice")

        first = await source.fetch(3)
        second = await source.fetch(3)

        assert first[0] is not second[0]
        assert first[0].first_message_preview == "abc"
        assert original.first_message_preview == "abcdef"
        assert source.fetch_count == 2

    @pytest.mark.asyncio
    async def test_fail_with(self) -> None:
        source = InMemoryRecordSource(owner_key="alice")
        source.fail_with = OSError("nope")
        with pytest.raises(OSError, match="nope"):
            await source.fetch(50)

    @pytest.mark.asyncio
    async def test_delete_matches_normalised_file_name(self) -> None:
        record = ChatRecord(record_id="a", file_name="a.jsonl")
        source = InMemoryRecordSource({"alice": [record]}, owner_key="alice")
        assert await source.delete_record("alice", "a.jsonl.jsonl") is True
        assert len(source) == 0

    @pytest.mark.asyncio
    async def test_owner_switch(self) -> None:
        source = InMemoryRecordSource(
            {"alice": [ChatRecord(record_id="a")], "bob": [ChatRecord(record_id="b")]},
            owner_key="alice",
        )
        source.switch_owner("bob")
        assert [r.record_id for r in await source.fetch(50)] == ["b"]
