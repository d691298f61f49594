"""Codec registry for the five supported filename encodings.

The set is closed: names are resolved once at the boundary into an
``Encoding`` member and everything downstream works with members only.
Decoding and encoding are strict; a single invalid byte or unrepresentable
character fails the whole name rather than producing a lossy result.
"""

from __future__ import annotations

from enum import Enum

from runzip.errors import DecodeError, EncodeError, UnsupportedEncoding


class Encoding(Enum):
    UTF_8 = ("utf-8", "utf-8")
    WINDOWS_1251 = ("windows-1251", "cp1251")
    CP866 = ("cp866", "cp866")
    KOI8_R = ("koi8-r", "koi8_r")
    KOI8_U = ("koi8-u", "koi8_u")

    def __init__(self, label: str, codec: str) -> None:
        self.label = label
        self.codec = codec

    @property
    def single_byte(self) -> bool:
        return self is not Encoding.UTF_8

    def __str__(self) -> str:
        return self.label


LEGACY_ENCODINGS: tuple[Encoding, ...] = (
    Encoding.WINDOWS_1251,
    Encoding.CP866,
    Encoding.KOI8_R,
    Encoding.KOI8_U,
)

_ALIASES: dict[str, Encoding] = {enc.label: enc for enc in Encoding}
_ALIASES["utf-8-mac"] = Encoding.UTF_8  # NFD names on macOS are still UTF-8 bytes

SUPPORTED_NAMES: tuple[str, ...] = tuple(_ALIASES)


def resolve(name: str) -> Encoding:
    """Map a user-supplied encoding name onto a supported ``Encoding``."""
    try:
        return _ALIASES[name.strip().lower()]
    except KeyError:
        raise UnsupportedEncoding(name) from None


def decode(raw: bytes, encoding: Encoding) -> str:
    try:
        return raw.decode(encoding.codec)
    except UnicodeDecodeError as exc:
        raise DecodeError(encoding.label, raw) from exc


def encode(text: str, encoding: Encoding) -> bytes:
    try:
        return text.encode(encoding.codec)
    except UnicodeEncodeError as exc:
        raise EncodeError(encoding.label, text) from exc


def transcode(raw: bytes, source: Encoding, target: Encoding) -> bytes:
    """Decode ``raw`` as ``source`` and re-encode it as ``target``."""
    return encode(decode(raw, source), target)
