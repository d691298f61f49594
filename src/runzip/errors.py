"""Error hierarchy.

Entry-level failures (``TranscodeError``) are recovered by the rewriter and
reported per entry. Archive-level failures (``ArchiveError``) abort the
archive being processed and leave the original file untouched.
"""

from __future__ import annotations

from pathlib import Path


class RunzipError(Exception):
    """Base class for every error raised by runzip."""


class UnsupportedEncoding(RunzipError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unsupported encoding: {name}")
        self.name = name


class TranscodeError(RunzipError):
    """A filename could not be moved between encodings."""


class DecodeError(TranscodeError):
    def __init__(self, encoding: str, raw: bytes) -> None:
        super().__init__(f"Failed to decode from {encoding}")
        self.encoding = encoding
        self.raw = raw


class EncodeError(TranscodeError):
    def __init__(self, encoding: str, text: str) -> None:
        super().__init__(f"Failed to encode to {encoding}")
        self.encoding = encoding
        self.text = text


class ArchiveError(RunzipError):
    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
        self.message = message


class ArchiveOpenError(ArchiveError):
    pass


class ArchiveParseError(ArchiveError):
    pass


class CommitError(ArchiveError):
    pass
