"""Archive rewriter: classify every entry name and rebuild the archive.

A dry run only classifies. A commit run streams every member, in order, into
a fresh archive written next to the original and swaps it in with
``atomic_replace`` once the whole archive has been written. Transcoding
failures are confined to their entry; container and filesystem failures
abort the archive with the original left as it was.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from runzip.archive import ArchiveEntry, atomic_replace, copy_entry, iter_entries
from runzip.charsets import Encoding, transcode
from runzip.detector import DetectionResult, DetectionStrategy, detect
from runzip.errors import ArchiveError, ArchiveOpenError, ArchiveParseError, TranscodeError

logger = logging.getLogger(__name__)

# Raised by zipfile while reading a member: CRC mismatch, truncated data,
# unsupported compression, encryption.
READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError)


class EntryStatus(str, Enum):
    ALREADY_UTF8 = "already-utf-8"
    OK = "ok"
    WOULD_FIX = "would-fix"
    FIXED = "fixed"
    FAILED = "failed"

    @property
    def is_ok(self) -> bool:
        return self in (EntryStatus.ALREADY_UTF8, EntryStatus.OK)


@dataclass
class RewriteOptions:
    target: Encoding = Encoding.UTF_8
    source: Encoding | None = None
    dry_run: bool = False
    strategy: DetectionStrategy = DetectionStrategy.FREQUENCY


@dataclass
class EntryReport:
    index: int
    original: bytes
    name: bytes
    status: EntryStatus
    source: Encoding | None = None
    detection: DetectionResult | None = None
    error: str | None = None

    @property
    def renamed(self) -> bool:
        return self.name != self.original


@dataclass
class ArchiveReport:
    path: Path
    dry_run: bool
    target: Encoding
    entries: list[EntryReport] = field(default_factory=list)
    committed: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def count(self, status: EntryStatus) -> int:
        return sum(1 for entry in self.entries if entry.status is status)


def plan_entry(
    index: int, raw_name: bytes, utf8_flag: bool, options: RewriteOptions
) -> EntryReport:
    """Decide the output name for one entry without touching any archive.

    A detection that fell back to UTF-8 for lack of evidence leaves the name
    alone whatever the target.
    """
    if utf8_flag:
        return EntryReport(index, raw_name, raw_name, EntryStatus.ALREADY_UTF8)

    detection = None
    source = options.source
    if source is None:
        detection = detect(raw_name, options.strategy)
        source = detection.encoding

    report = EntryReport(index, raw_name, raw_name, EntryStatus.OK, source, detection)
    if source is options.target or (detection is not None and detection.fallback):
        return report
    try:
        recoded = transcode(raw_name, source, options.target)
    except TranscodeError as exc:
        logger.info("failed to recode %r: %s", raw_name, exc)
        report.status = EntryStatus.FAILED
        report.error = str(exc)
        return report
    if recoded != raw_name:
        report.name = recoded
        report.status = EntryStatus.WOULD_FIX if options.dry_run else EntryStatus.FIXED
    return report


def _output_flag(entry: ArchiveEntry, report: EntryReport, target: Encoding) -> bool:
    if not report.renamed:
        return entry.utf8_flag
    return target is Encoding.UTF_8


def _open_archive(path: Path) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(path)
    except OSError as exc:
        raise ArchiveOpenError(path, f"Failed to open ({exc.strerror or exc})") from exc
    except (zipfile.BadZipFile, UnicodeDecodeError, ValueError) as exc:
        raise ArchiveParseError(path, f"Failed to read ZIP archive ({exc})") from exc


def _dry_run(src: zipfile.ZipFile, report: ArchiveReport, options: RewriteOptions) -> None:
    for index, entry in enumerate(iter_entries(src)):
        report.entries.append(plan_entry(index, entry.raw_name, entry.utf8_flag, options))


def _commit(
    path: Path, src: zipfile.ZipFile, report: ArchiveReport, options: RewriteOptions
) -> None:
    with atomic_replace(path) as handle:
        with zipfile.ZipFile(handle, "w") as dst:
            dst.comment = src.comment
            for index, entry in enumerate(iter_entries(src)):
                planned = plan_entry(index, entry.raw_name, entry.utf8_flag, options)
                flag = _output_flag(entry, planned, options.target)
                try:
                    copy_entry(src, entry, dst, planned.name, flag)
                except READ_ERRORS as exc:
                    raise ArchiveParseError(
                        path, f"Failed to read entry {entry.info.filename!r} ({exc})"
                    ) from exc
                report.entries.append(planned)
        # The source handle must be released before the replacement is moved in.
        src.close()
    report.committed = True


def rewrite_archive(path: Path, options: RewriteOptions) -> ArchiveReport:
    """Classify and, unless ``options.dry_run``, rewrite one archive.

    Raises ``ArchiveError`` subclasses for archive-level failures; the
    original file is untouched whenever one is raised.
    """
    path = Path(path)
    report = ArchiveReport(path=path, dry_run=options.dry_run, target=options.target)
    with _open_archive(path) as src:
        if options.dry_run:
            _dry_run(src, report, options)
        else:
            _commit(path, src, report, options)
    logger.info(
        "%s: %d entries, %d renamed%s",
        path,
        len(report.entries),
        sum(1 for entry in report.entries if entry.renamed),
        " (dry run)" if options.dry_run else "",
    )
    return report


def rewrite_archives(paths: Iterable[Path], options: RewriteOptions) -> list[ArchiveReport]:
    """Process archives one after another; a failed archive does not stop the rest."""
    reports: list[ArchiveReport] = []
    for path in paths:
        path = Path(path)
        try:
            reports.append(rewrite_archive(path, options))
        except ArchiveError as exc:
            logger.info("error processing %s: %s", path, exc)
            failed = ArchiveReport(path=path, dry_run=options.dry_run, target=options.target)
            failed.error = str(exc)
            reports.append(failed)
    return reports
