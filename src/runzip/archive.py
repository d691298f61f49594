"""ZIP container primitives on top of ``zipfile``.

``zipfile`` hands out member names as ``str``: decoded as cp437 when the UTF-8
flag (general purpose bit 11) is clear and as UTF-8 when it is set. Both
decodes are lossless, so the stored bytes are recovered by encoding
``orig_filename`` back the same way. On the write side ``RawNameZipInfo``
emits exactly the name bytes it was given, with the flag bit set or cleared
as requested, instead of ``zipfile``'s ascii-else-utf-8 choice.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import struct
import tempfile
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from runzip.errors import CommitError

logger = logging.getLogger(__name__)

UTF8_FLAG = 0x800
MSDOS_DIRECTORY = 0x10
DEFAULT_DIR_MODE = 0o755
COPY_CHUNK = 1024 * 1024

# Extra fields the writer regenerates (zip64) or that would contradict a new
# name (Info-ZIP Unicode Path).
STRIPPED_EXTRA_IDS = frozenset({0x0001, 0x7075})


@dataclass(frozen=True)
class ArchiveEntry:
    raw_name: bytes
    utf8_flag: bool
    compress_type: int
    unix_mode: int | None
    file_size: int
    info: zipfile.ZipInfo

    @property
    def is_dir(self) -> bool:
        return self.raw_name.endswith(b"/")


class RawNameZipInfo(zipfile.ZipInfo):
    """ZipInfo that writes ``raw_name`` verbatim."""

    def __init__(self, raw_name: bytes, utf8: bool, date_time=(1980, 1, 1, 0, 0, 0)) -> None:
        super().__init__(raw_name.decode("utf-8" if utf8 else "cp437"), date_time)
        self.raw_name = raw_name
        self.utf8 = utf8

    def _encodeFilenameFlags(self):  # noqa: N802 - zipfile hook
        if self.utf8:
            return self.raw_name, self.flag_bits | UTF8_FLAG
        return self.raw_name, self.flag_bits & ~UTF8_FLAG


def raw_name_of(info: zipfile.ZipInfo) -> bytes:
    if info.flag_bits & UTF8_FLAG:
        return info.orig_filename.encode("utf-8")
    return info.orig_filename.encode("cp437")


def unix_mode_of(info: zipfile.ZipInfo) -> int | None:
    mode = info.external_attr >> 16
    return mode or None


def iter_entries(zf: zipfile.ZipFile) -> Iterator[ArchiveEntry]:
    """Yield every member in central-directory order."""
    for info in zf.infolist():
        yield ArchiveEntry(
            raw_name=raw_name_of(info),
            utf8_flag=bool(info.flag_bits & UTF8_FLAG),
            compress_type=info.compress_type,
            unix_mode=unix_mode_of(info),
            file_size=info.file_size,
            info=info,
        )


def strip_extra(extra: bytes, ids: frozenset[int] = STRIPPED_EXTRA_IDS) -> bytes:
    """Drop the given header ids from a ZIP extra field block."""
    kept = bytearray()
    idx = 0
    while idx + 4 <= len(extra):
        header_id, size = struct.unpack("<HH", extra[idx : idx + 4])
        end = idx + 4 + size
        if header_id not in ids:
            kept += extra[idx:end]
        idx = end
    return bytes(kept)


def entry_info(entry: ArchiveEntry, name: bytes, utf8: bool) -> RawNameZipInfo:
    """Build the output header for ``entry`` stored under ``name``."""
    src = entry.info
    out = RawNameZipInfo(name, utf8, date_time=src.date_time)
    out.compress_type = src.compress_type
    out.comment = src.comment
    out.extra = strip_extra(src.extra)
    out.create_system = src.create_system
    out.external_attr = src.external_attr
    if entry.unix_mode is None and name.endswith(b"/"):
        out.create_system = 3
        out.external_attr = ((stat.S_IFDIR | DEFAULT_DIR_MODE) << 16) | MSDOS_DIRECTORY
    return out


def copy_entry(
    src: zipfile.ZipFile, entry: ArchiveEntry, dst: zipfile.ZipFile, name: bytes, utf8: bool
) -> None:
    """Stream one member's content into ``dst`` under a (possibly new) name."""
    out = entry_info(entry, name, utf8)
    force_zip64 = entry.file_size > zipfile.ZIP64_LIMIT
    with src.open(entry.info) as reader, dst.open(out, "w", force_zip64=force_zip64) as writer:
        shutil.copyfileobj(reader, writer, COPY_CHUNK)


def _fsync_dir(path: Path) -> None:
    if os.name == "nt":
        return
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


@contextmanager
def atomic_replace(path: Path) -> Iterator[BinaryIO]:
    """Yield a temporary file next to ``path`` and move it over ``path`` on success.

    The temporary file is flushed and fsynced before ``os.replace``; readers
    of ``path`` see either the old file or the complete new one. If the body
    raises, the temporary file is removed and ``path`` is not touched.
    """
    parent = path.parent
    try:
        handle = tempfile.NamedTemporaryFile(
            dir=parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        )
    except OSError as exc:
        raise CommitError(path, "Failed to create temporary file") from exc
    tmp_path = Path(handle.name)
    logger.info("writing replacement for %s to %s", path, tmp_path)
    try:
        with handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise CommitError(path, f"Failed to install replacement archive ({exc})") from exc
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    try:
        _fsync_dir(parent)
    except OSError as exc:
        logger.warning("could not fsync directory %s: %s", parent, exc)
    logger.info("replaced %s", path)
