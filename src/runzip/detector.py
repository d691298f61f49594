"""Per-filename source encoding detection.

Detection is an ordered cascade of rules. Each rule looks at the raw name
bytes and either returns a ``DetectionResult`` or ``None`` ("no opinion");
the first answer wins. The last rule of every cascade always answers, and
when there is no evidence of Cyrillic text it answers UTF-8 so that names are
never rewritten on a guess.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import chardet

from runzip.charsets import Encoding
from runzip.frequency import CandidateScore, best_candidate, rank_candidates

logger = logging.getLogger(__name__)

CYRILLIC_RANGES = ((0x0400, 0x04FF), (0x0500, 0x052F))

# chardet labels (lower-cased) that map onto a supported encoding.
CHARDET_LABELS: dict[str, Encoding] = {
    "utf-8": Encoding.UTF_8,
    "windows-1251": Encoding.WINDOWS_1251,
    "cp1251": Encoding.WINDOWS_1251,
    "ibm866": Encoding.CP866,
    "cp866": Encoding.CP866,
    "koi8-r": Encoding.KOI8_R,
    "koi8-u": Encoding.KOI8_U,
}


class DetectionStrategy(str, Enum):
    FREQUENCY = "frequency"
    CHARDET = "chardet"


@dataclass
class DetectionResult:
    encoding: Encoding
    rule: str
    candidates: list[CandidateScore] = field(default_factory=list)
    guess: str | None = None
    confidence: float | None = None
    # Set when the rule answered UTF-8 only for lack of evidence.
    fallback: bool = False


Rule = Callable[[bytes], DetectionResult | None]


def _as_utf8(raw: bytes) -> str | None:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _is_cyrillic(ch: str) -> bool:
    code = ord(ch)
    return any(lo <= code <= hi for lo, hi in CYRILLIC_RANGES)


def utf8_cyrillic_rule(raw: bytes) -> DetectionResult | None:
    """Already valid UTF-8 carrying Cyrillic text: nothing to repair."""
    text = _as_utf8(raw)
    if text is not None and any(_is_cyrillic(ch) for ch in text):
        return DetectionResult(Encoding.UTF_8, "utf8-cyrillic")
    return None


def ascii_rule(raw: bytes) -> DetectionResult | None:
    if raw.isascii():
        return DetectionResult(Encoding.UTF_8, "ascii")
    return None


def frequency_rule(raw: bytes) -> DetectionResult:
    """Pick the legacy encoding whose decode reads most like Cyrillic text."""
    ranked = rank_candidates(raw)
    best = best_candidate(ranked)
    logger.debug("candidates for %r: %s", raw, ranked)
    if best is None:
        return DetectionResult(
            Encoding.UTF_8, "frequency-no-match", candidates=ranked, fallback=True
        )
    return DetectionResult(best.encoding, "frequency", candidates=ranked)


def chardet_rule(raw: bytes) -> DetectionResult:
    """Delegate to chardet, keeping only answers within the supported set."""
    guess = chardet.detect(raw)
    label = guess.get("encoding")
    confidence = guess.get("confidence")
    encoding = CHARDET_LABELS.get(label.lower()) if label else None
    if encoding is None:
        return DetectionResult(
            Encoding.UTF_8,
            "chardet-unsupported",
            guess=label,
            confidence=confidence,
            fallback=True,
        )
    return DetectionResult(encoding, "chardet", guess=label, confidence=confidence)


CASCADES: dict[DetectionStrategy, tuple[Rule, ...]] = {
    DetectionStrategy.FREQUENCY: (utf8_cyrillic_rule, ascii_rule, frequency_rule),
    DetectionStrategy.CHARDET: (utf8_cyrillic_rule, ascii_rule, chardet_rule),
}


def detect(
    raw: bytes, strategy: DetectionStrategy = DetectionStrategy.FREQUENCY
) -> DetectionResult:
    """Run the cascade for ``strategy`` and return the first answer."""
    for rule in CASCADES[strategy]:
        result = rule(raw)
        if result is not None:
            logger.debug("detected %s for %r via %s", result.encoding, raw, result.rule)
            return result
    # Every cascade ends in a rule that always answers.
    raise AssertionError(f"detection cascade for {strategy.value} gave no answer")
