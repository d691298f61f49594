"""Summaries over run logs (CSV or JSONL)."""

from __future__ import annotations

import csv
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import orjson


def _iter_csv(path: Path) -> Iterator[dict[str, str]]:
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        yield from reader


def _iter_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    with path.open("rb") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield orjson.loads(line)


def iter_log(path: Path) -> Iterator[dict[str, Any]]:
    """Yield rows from a CSV or JSONL log, picked by file suffix."""
    return _iter_csv(path) if path.suffix.lower() == ".csv" else _iter_jsonl(path)


def summarize_log(path: Path) -> dict[str, object]:
    """Compute simple aggregates from a CSV/JSONL log."""
    archives = 0
    failed_archives = 0
    entries_total = 0
    status_counts: dict[str, int] = {}
    accuracies: list[float] = []

    for row in iter_log(path):
        # CSV uses string values; JSONL keeps nested payloads.
        if "archive" in row:
            archives += 1
            if row.get("error"):
                failed_archives += 1
        if "entries" in row:
            entries_total += int(row["entries"])
        if "status_counts" in row:
            counts_raw = row["status_counts"]
            counts = orjson.loads(counts_raw) if isinstance(counts_raw, str) else counts_raw
            for k, v in counts.items():
                status_counts[k] = status_counts.get(k, 0) + int(v)
        evaluation = row.get("evaluation")
        if isinstance(evaluation, dict) and "accuracy" in evaluation:
            accuracies.append(float(evaluation["accuracy"]))

    avg_accuracy = sum(accuracies) / len(accuracies) if accuracies else None
    return {
        "archives": archives,
        "failed_archives": failed_archives,
        "entries_total": entries_total,
        "status_counts": status_counts,
        "evaluations": len(accuracies),
        "average_accuracy": round(avg_accuracy, 4) if avg_accuracy is not None else None,
    }
