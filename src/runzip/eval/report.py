"""Helpers to log run results (archive reports, detector evals) for later review."""

from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import orjson

from runzip.rewriter import ArchiveReport, EntryStatus


def _default(obj: object) -> object:
    # Entry names are raw bytes in arbitrary encodings; keep them lossless.
    if isinstance(obj, bytes):
        return obj.hex()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Cannot serialize {type(obj).__name__}")


def dumps(payload: Any, indent: bool = False) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(payload, default=_default, option=option)


def archive_report_to_row(report: ArchiveReport, tag: str | None = None) -> dict[str, Any]:
    """Flatten an ArchiveReport into a CSV/JSONL-friendly row."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "archive": str(report.path),
        "tag": tag or "",
        "dry_run": report.dry_run,
        "target": report.target.label,
        "entries": len(report.entries),
        "status_counts": {status.value: report.count(status) for status in EntryStatus},
        "committed": report.committed,
        "error": report.error or "",
    }


def entry_rows(report: ArchiveReport) -> list[dict[str, Any]]:
    return [
        {
            "index": entry.index,
            "original": entry.original.hex(),
            "name": entry.name.hex(),
            "display": entry.name.decode("utf-8", errors="replace"),
            "status": entry.status.value,
            "source": entry.source.label if entry.source else None,
            "rule": entry.detection.rule if entry.detection else None,
            "error": entry.error,
        }
        for entry in report.entries
    ]


def append_csv(path: Path, row: dict[str, Any]) -> None:
    """Append a row to a CSV file, writing headers when the file is new."""
    path.parent.mkdir(parents=True, exist_ok=True)
    is_new = not path.exists()
    flat = {k: dumps(v).decode() if isinstance(v, dict) else v for k, v in row.items()}
    with path.open("a", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(flat.keys()))
        if is_new:
            writer.writeheader()
        writer.writerow(flat)


def append_jsonl(path: Path, payload: Any) -> None:
    """Append a JSON line (UTF-8) to a log file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("ab") as f:
        f.write(dumps(payload) + b"\n")
