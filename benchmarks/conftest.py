"""Shared bootstrap for chat-lineage benchmarks."""
from __future__ import annotations

import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).parent.parent
_SRC = _REPO_ROOT / "src"
_BENCHMARKS = _REPO_ROOT / "benchmarks"

for _path in [str(_SRC), str(_BENCHMARKS)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

from chat_lineage.branching.resolver import resolve_relations
from chat_lineage.records.models import ChatRecord
from chat_lineage.tree.builder import ForestBuilder

__all__ = ["ChatRecord", "ForestBuilder", "resolve_relations"]
