"""Quick viewer for run logs written by `runzip fix --report` or `runzip eval --log-jsonl`.

Shows entry status totals and detector accuracy per tag in Rich tables.
"""

from __future__ import annotations

import argparse
from collections import Counter
from pathlib import Path

from rich.console import Console
from rich.table import Table

from runzip.eval.summarize import iter_log, summarize_log


def main() -> None:
    parser = argparse.ArgumentParser(description="View runzip logs.")
    parser.add_argument("log", type=Path, help="CSV or JSONL log file.")
    args = parser.parse_args()

    console = Console()
    summary = summarize_log(args.log)

    console.print("[bold]Aggregate[/]")
    console.print(
        f"- archives: {summary['archives']} ({summary['failed_archives']} failed), "
        f"entries: {summary['entries_total']}, evaluations: {summary['evaluations']}, "
        f"avg accuracy: {summary['average_accuracy']}"
    )

    status_table = Table(title="Entry Status")
    status_table.add_column("Status")
    status_table.add_column("Count", justify="right")
    counts = summary.get("status_counts", {}) or {}
    for status, count in sorted(counts.items(), key=lambda kv: kv[1], reverse=True):
        status_table.add_row(status, str(count))
    console.print(status_table)

    tag_counts: Counter[str] = Counter()
    tag_accuracy: Counter[str] = Counter()
    for row in iter_log(args.log):
        evaluation = row.get("evaluation")
        if row.get("tag") and isinstance(evaluation, dict):
            tag_counts[row["tag"]] += 1
            tag_accuracy[row["tag"]] += float(evaluation.get("accuracy", 0.0))
    if tag_counts:
        tag_table = Table(title="Evaluations by Tag")
        tag_table.add_column("Tag")
        tag_table.add_column("Runs", justify="right")
        tag_table.add_column("Avg Accuracy", justify="right")
        for tag, count in tag_counts.most_common():
            tag_table.add_row(tag, str(count), f"{tag_accuracy[tag] / count:.4f}")
        console.print(tag_table)


if __name__ == "__main__":
    main()
