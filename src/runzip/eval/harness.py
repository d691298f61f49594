"""Detector evaluation over synthetic legacy-encoded filenames.

A sample counts as recovered when decoding its bytes with the detected
encoding gives back the original text. koi8-r and koi8-u agree on every
Russian letter, so for Russian-only names either answer is a recovery.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from runzip.charsets import decode
from runzip.data.generator import generate_filenames
from runzip.detector import DetectionStrategy, detect
from runzip.errors import DecodeError


@dataclass
class SampleEval:
    text: str
    expected: str
    detected: str
    recovered: bool


@dataclass
class EvalSummary:
    samples: int
    recovered: int
    accuracy: float
    strategy: str
    per_encoding: dict[str, dict[str, int]]
    confusions: dict[str, int]
    misses: list[SampleEval] = field(default_factory=list)


def evaluate_detector(
    count: int = 32,
    seed: int = 1234,
    strategy: DetectionStrategy = DetectionStrategy.FREQUENCY,
    miss_limit: int = 5,
) -> EvalSummary:
    """Generate ``count`` names per legacy encoding and score the detector on them."""
    per_encoding: dict[str, Counter[str]] = {}
    confusions: Counter[str] = Counter()
    misses: list[SampleEval] = []
    recovered_total = 0
    names = generate_filenames(count, seed=seed)

    for sample in names:
        result = detect(sample.raw, strategy)
        try:
            recovered = decode(sample.raw, result.encoding) == sample.text
        except DecodeError:
            recovered = False
        stats = per_encoding.setdefault(sample.encoding.label, Counter())
        stats["samples"] += 1
        if recovered:
            stats["recovered"] += 1
            recovered_total += 1
            continue
        confusions[f"{sample.encoding.label}->{result.encoding.label}"] += 1
        if len(misses) < miss_limit:
            misses.append(
                SampleEval(
                    text=sample.text,
                    expected=sample.encoding.label,
                    detected=result.encoding.label,
                    recovered=False,
                )
            )

    accuracy = recovered_total / len(names) if names else 0.0
    return EvalSummary(
        samples=len(names),
        recovered=recovered_total,
        accuracy=round(accuracy, 4),
        strategy=strategy.value,
        per_encoding={label: dict(stats) for label, stats in per_encoding.items()},
        confusions=dict(confusions),
        misses=misses,
    )
