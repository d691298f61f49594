"""Statistical Cyrillic-likelihood scorer.

Each legacy candidate decodes the raw filename bytes. A decode that fails, is
not printable text or holds no Russian/Ukrainian letter scores zero. The rest
are normalised into koi8-u bytes and scored against a static letter-frequency
table:

    factor = sum(weight[fold(b)] * (count[b] if count[b] else -10) for b in 0..255)

Letters that are expected but absent pull the score down, so a decode that
happens to succeed without producing real words does not win by accident.
Two soft deductions then separate look-alike decodes: a lowercase letter
followed by an uppercase one inside a Cyrillic run (koi8 and windows-1251 swap
letter case), and stray symbols such as box drawing characters that real
filenames rarely contain. Candidates are ranked by recognised letter count
first and factor second.
"""

from __future__ import annotations

from dataclasses import dataclass

from runzip.charsets import LEGACY_ENCODINGS, Encoding, decode
from runzip.errors import DecodeError

NORMAL_FORM = "koi8_u"
UNSEEN_PENALTY = 10
ASCII_WEIGHT = 10
CASE_FLIP_PENALTY = 2000
STRAY_PENALTY = 500
# A single recognised letter is not enough to pick between several candidates.
MIN_EVIDENCE = 2

# Russian letter frequencies, percent * 100.
LETTER_FREQUENCIES: dict[str, int] = {
    "О": 1097, "Е": 845, "А": 801, "И": 735, "Н": 670, "Т": 626, "С": 547,
    "Р": 473, "В": 454, "Л": 440, "К": 349, "М": 321, "Д": 298, "П": 281,
    "У": 262, "Я": 201, "Ы": 190, "Ь": 174, "Г": 170, "З": 165, "Б": 159,
    "Ч": 144, "Й": 121, "Х": 97, "Ж": 94, "Ш": 73, "Ю": 64, "Ц": 48,
    "Щ": 36, "Э": 32, "Ф": 26, "Ъ": 4, "Ё": 4,
}  # fmt: skip

# Ukrainian-only letters, same scale.
UKRAINIAN_FREQUENCIES: dict[str, int] = {"І": 500, "Ї": 60, "Є": 40, "Ґ": 10}

_UPPER = "".join(LETTER_FREQUENCIES) + "".join(UKRAINIAN_FREQUENCIES)
CYRILLIC_LETTERS = frozenset(_UPPER + _UPPER.lower())
# Non-ASCII symbols that turn up in real filenames and cost nothing.
FILENAME_SYMBOLS = frozenset("№«»–—…‘’“”•€°©®™§±×")

# koi8 lowercase positions outside 0xC0-0xDF and their uppercase twins.
_KOI8_EXTRA_FOLD = {0xA3: 0xB3, 0xA4: 0xB4, 0xA6: 0xB6, 0xA7: 0xB7, 0xAD: 0xBD}


def fold(byte: int) -> int:
    """Map a koi8 lowercase letter position onto its uppercase position."""
    if 0xC0 <= byte <= 0xDF:
        return byte + 0x20
    return _KOI8_EXTRA_FOLD.get(byte, byte)


def _build_weights() -> tuple[int, ...]:
    weights = [0] * 256
    for code in range(0x20, 0x7F):
        weights[code] = ASCII_WEIGHT
    for table in (LETTER_FREQUENCIES, UKRAINIAN_FREQUENCIES):
        for letter, weight in table.items():
            weights[letter.encode(NORMAL_FORM)[0]] = weight
    return tuple(weights)


WEIGHTS: tuple[int, ...] = _build_weights()
_FOLDED_WEIGHTS: tuple[int, ...] = tuple(WEIGHTS[fold(b)] for b in range(256))


@dataclass(frozen=True)
class CandidateScore:
    encoding: Encoding
    recognized: int
    factor: int


def count_letters(text: str) -> int:
    return sum(1 for ch in text if ch in CYRILLIC_LETTERS)


def is_plausible_filename(text: str) -> bool:
    """Printable text carrying at least one Russian/Ukrainian letter."""
    return text.isprintable() and count_letters(text) > 0


def case_flips(text: str) -> int:
    """Count lowercase-to-uppercase steps between adjacent Cyrillic letters."""
    flips = 0
    for prev, ch in zip(text, text[1:]):
        if prev in CYRILLIC_LETTERS and ch in CYRILLIC_LETTERS:
            flips += prev.islower() and ch.isupper()
    return flips


def stray_symbols(text: str) -> int:
    return sum(
        1
        for ch in text
        if not ch.isascii() and ch not in CYRILLIC_LETTERS and ch not in FILENAME_SYMBOLS
    )


def build_histogram(text: str) -> list[int]:
    histogram = [0] * 256
    for byte in text.encode(NORMAL_FORM, errors="ignore"):
        histogram[byte] += 1
    return histogram


def cyrillic_factor(histogram: list[int]) -> int:
    return sum(
        weight * (count if count > 0 else -UNSEEN_PENALTY)
        for weight, count in zip(_FOLDED_WEIGHTS, histogram, strict=True)
    )


def score_text(text: str) -> int:
    """Frequency factor minus the case-flip and stray-symbol deductions."""
    return (
        cyrillic_factor(build_histogram(text))
        - CASE_FLIP_PENALTY * case_flips(text)
        - STRAY_PENALTY * stray_symbols(text)
    )


def score_candidate(raw: bytes, encoding: Encoding) -> CandidateScore:
    """Score one candidate; undecodable or implausible text scores zero."""
    try:
        text = decode(raw, encoding)
    except DecodeError:
        return CandidateScore(encoding, 0, 0)
    if not is_plausible_filename(text):
        return CandidateScore(encoding, 0, 0)
    return CandidateScore(encoding, count_letters(text), score_text(text))


def rank_candidates(
    raw: bytes, candidates: tuple[Encoding, ...] = LEGACY_ENCODINGS
) -> list[CandidateScore]:
    """Score every candidate, best first. Ties keep candidate order."""
    scores = [score_candidate(raw, enc) for enc in candidates]
    return sorted(scores, key=lambda s: (s.recognized, s.factor), reverse=True)


def best_candidate(ranked: list[CandidateScore]) -> CandidateScore | None:
    """Top-ranked candidate, or None when the evidence does not support a choice.

    Nothing Cyrillic at all is no match. So is a single recognised letter when
    another candidate also reads as Cyrillic.
    """
    if not ranked or ranked[0].recognized == 0:
        return None
    if ranked[0].recognized < MIN_EVIDENCE and sum(s.recognized > 0 for s in ranked) > 1:
        return None
    return ranked[0]
