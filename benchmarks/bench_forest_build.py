"""Benchmark: Forest build latency — resolve plus build, p50/p99.

Measures resolve_relations() followed by ForestBuilder.build_forest() over
a synthetic listing where every fifth chat branches from an earlier one.
"""
from __future__ import annotations

import json
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chat_lineage.branching.resolver import resolve_relations
from chat_lineage.records.models import ChatRecord
from chat_lineage.tree.builder import ForestBuilder

_RECORDS: int = 1_000
_WARMUP: int = 5
_ITERATIONS: int = 50


def _make_records(count: int) -> list[ChatRecord]:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    records: list[ChatRecord] = []
    for i in range(count):
        hint = f"chat-{i // 5}" if i % 5 else None
        records.append(
            ChatRecord(
                record_id=f"chat-{i}",
                message_count=i % 40,
                updated_at=base + timedelta(minutes=i),
                parent_hint=hint,
            )
        )
    return records


def bench_forest_build() -> dict[str, object]:
    """Benchmark resolve + build per call.

    Returns
    -------
    dict with keys: operation, records, iterations, total_seconds,
    avg_latency_ms, p50_latency_ms, p99_latency_ms.
    """
    records = _make_records(_RECORDS)
    builder = ForestBuilder()

    for _ in range(_WARMUP):
        builder.build_forest(records, resolve_relations(records))

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        builder.build_forest(records, resolve_relations(records))
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)

    result: dict[str, object] = {
        "operation": "forest_build",
        "records": _RECORDS,
        "iterations": _ITERATIONS,
        "total_seconds": round(sum(latencies_ms) / 1000, 4),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_forest_build] {result['operation']}: "
        f"p50={result['p50_latency_ms']:.4f}ms  "
        f"p99={result['p99_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_forest_build()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "forest_build_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
