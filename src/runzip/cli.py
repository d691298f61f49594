from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from runzip.charsets import Encoding, resolve
from runzip.config import ConfigError, RunzipConfig, load_config, resolve_encodings
from runzip.detector import DetectionResult, DetectionStrategy, detect
from runzip.errors import UnsupportedEncoding
from runzip.eval.harness import evaluate_detector
from runzip.eval.report import append_jsonl, archive_report_to_row, dumps, entry_rows
from runzip.eval.summarize import summarize_log
from runzip.rewriter import (
    ArchiveReport,
    EntryReport,
    EntryStatus,
    RewriteOptions,
    rewrite_archives,
)

app = typer.Typer(help="Fix Russian filename encodings inside ZIP archives.")
console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _setup_logging(verbose: int) -> None:
    logging.basicConfig(
        level=LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _display(raw: bytes, encoding: Encoding) -> str:
    return escape(raw.decode(encoding.codec, errors="replace"))


def _print_detection(detection: DetectionResult) -> None:
    console.print(f"    detection: {detection.encoding} via {detection.rule}")
    if detection.guess is not None:
        console.print(f"    chardet guess: {detection.guess} ({detection.confidence})")
    for score in detection.candidates:
        console.print(
            f"    {score.encoding.label:<13} chars={score.recognized} factor={score.factor}"
        )


def _print_entry(entry: EntryReport, target: Encoding, verbose: int) -> None:
    source = entry.source or Encoding.UTF_8
    original = _display(entry.original, source)
    if verbose >= 2:
        console.print(f"  raw bytes for '{original}': {entry.original.hex(' ')}")
    if verbose >= 1 and entry.detection is not None:
        _print_detection(entry.detection)

    if entry.status is EntryStatus.ALREADY_UTF8:
        console.print(f"  {original}: [green]OK[/] (already UTF-8)")
    elif entry.status is EntryStatus.OK:
        console.print(f"  {original}: [green]OK[/]")
    elif entry.status is EntryStatus.FAILED:
        console.print(f'  [red]Failed to recode[/] "{original}": {escape(entry.error or "")}')
    else:
        label = "WOULD FIX" if entry.status is EntryStatus.WOULD_FIX else "FIXED"
        renamed = _display(entry.name, target)
        console.print(f"  {renamed}: [yellow]{label}[/] ({source} -> {target})")


def _print_report(report: ArchiveReport, verbose: int) -> None:
    if report.error:
        path = escape(str(report.path))
        err_console.print(f"[bold red]Error processing[/] {path}: {escape(report.error)}")
        return
    count = len(report.entries)
    console.print(f"{escape(str(report.path))} contains {count} file{'' if count == 1 else 's'}")
    for entry in report.entries:
        _print_entry(entry, report.target, verbose)


def _parse_strategy(name: str) -> DetectionStrategy:
    try:
        return DetectionStrategy(name.lower())
    except ValueError:
        choices = ", ".join(s.value for s in DetectionStrategy)
        raise typer.BadParameter(f"Unknown detector '{name}'. Choose from {choices}.") from None


@app.command()
def fix(
    files: list[Path] = typer.Argument(..., help="ZIP files to process."),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Dry run. Do not modify the archives."
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Verbose output (can be repeated)."
    ),
    source: str | None = typer.Option(
        None, "--source", "-s", help="Source encoding. Auto-detected per name if not set."
    ),
    target: str | None = typer.Option(
        None, "--target", "-t", help="Target encoding (default utf-8)."
    ),
    cp866: bool = typer.Option(
        False, "--cp866", help="Write names in cp866 for legacy DOS/Windows unzip tools."
    ),
    detector: str | None = typer.Option(
        None, "--detector", "-d", help="Detection strategy: frequency | chardet."
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML or JSON file with default options."
    ),
    report: Path | None = typer.Option(
        None, "--report", help="Append a JSONL record per archive to this file."
    ),
) -> None:
    """Convert filenames inside ZIP archives from koi8-r, koi8-u, cp866 or windows-1251.

    A commit rewrites the whole archive: member data is decompressed and
    recompressed with the same method at the default level, so compressed
    sizes can change. An encrypted or corrupted member aborts that archive
    and leaves it untouched.
    """
    try:
        cfg = load_config(config) if config else RunzipConfig()
    except (OSError, ValueError, ConfigError) as exc:
        raise typer.BadParameter(f"Cannot load config {config}: {exc}") from exc

    cfg.source = source or cfg.source
    cfg.target = target or cfg.target
    cfg.cp866 = cp866 or cfg.cp866
    cfg.verbose = verbose or cfg.verbose
    cfg.report = report or cfg.report
    strategy = _parse_strategy(detector or cfg.detector)
    try:
        source_enc, target_enc = resolve_encodings(cfg)
    except UnsupportedEncoding as exc:
        raise typer.BadParameter(str(exc)) from exc

    _setup_logging(cfg.verbose)
    options = RewriteOptions(
        target=target_enc, source=source_enc, dry_run=dry_run, strategy=strategy
    )
    reports = rewrite_archives(files, options)

    for archive_report in reports:
        _print_report(archive_report, cfg.verbose)
        if cfg.report:
            row = archive_report_to_row(archive_report)
            row["entry_details"] = entry_rows(archive_report)
            append_jsonl(cfg.report, row)

    if any(not r.ok for r in reports):
        raise typer.Exit(code=1)


@app.command("detect")
def detect_name(
    name: str = typer.Argument(..., help="Filename to inspect."),
    as_hex: bool = typer.Option(False, "--hex", help="NAME is a hex dump of the raw bytes."),
    encoding: str = typer.Option(
        "windows-1251", "--as", help="Encoding used to turn NAME into raw bytes."
    ),
    detector: str = typer.Option(
        DetectionStrategy.FREQUENCY.value, "--detector", "-d", help="frequency | chardet."
    ),
) -> None:
    """Show how a single filename would be detected."""
    strategy = _parse_strategy(detector)
    if as_hex:
        try:
            raw = bytes.fromhex(name)
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid hex: {exc}") from exc
    else:
        try:
            raw = name.encode(resolve(encoding).codec)
        except UnsupportedEncoding as exc:
            raise typer.BadParameter(str(exc)) from exc
        except UnicodeEncodeError as exc:
            raise typer.BadParameter(f"NAME is not representable in {encoding}") from exc

    result = detect(raw, strategy)
    console.print(f"[bold]Raw bytes[/]: {raw.hex(' ')}")
    console.print(f"[bold green]Detected[/] {result.encoding} via {result.rule}")
    console.print(f"[bold]Decoded[/]: {_display(raw, result.encoding)}")
    if result.guess is not None:
        console.print(f"chardet guess: {result.guess} (confidence {result.confidence})")
    if result.candidates:
        table = Table(title="Candidates")
        table.add_column("encoding")
        table.add_column("chars", justify="right")
        table.add_column("factor", justify="right")
        for score in result.candidates:
            table.add_row(score.encoding.label, str(score.recognized), str(score.factor))
        console.print(table)


@app.command("eval")
def eval_detector(
    count: int = typer.Option(32, "--count", "-c", help="Synthetic names per encoding."),
    seed: int = typer.Option(1234, "--seed", help="Seed for synthetic generation."),
    detector: str = typer.Option(
        DetectionStrategy.FREQUENCY.value, "--detector", "-d", help="frequency | chardet."
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Optional path to write evaluation JSON."
    ),
    log_jsonl: Path | None = typer.Option(
        None, "--log-jsonl", help="Append the evaluation as JSONL for trend tracking."
    ),
    tag: str | None = typer.Option(None, "--tag", help="Optional tag to mark this run."),
) -> None:
    """Evaluate the detector on synthetic legacy-encoded filenames."""
    strategy = _parse_strategy(detector)
    summary = evaluate_detector(count=count, seed=seed, strategy=strategy)
    payload = {
        "generator": {"count": count, "seed": seed},
        "evaluation": summary,
        "tag": tag,
    }
    if log_jsonl:
        append_jsonl(log_jsonl, payload)
        console.print(f"[bold green]Appended JSONL log[/] to {log_jsonl}")
    if output:
        output.write_bytes(dumps(payload, indent=True))
        console.print(f"[bold green]Wrote evaluation report[/] to {output}")
    else:
        console.print(dumps(payload, indent=True).decode())


@app.command()
def summarize(
    log: Path = typer.Argument(..., help="CSV or JSONL log written by fix --report or eval."),
) -> None:
    """Summarize a run log."""
    if not log.is_file():
        raise typer.BadParameter(f"Log file not found: {log}")
    console.print(dumps(summarize_log(log), indent=True).decode())


if __name__ == "__main__":
    app()
