"""Synthetic legacy-encoded filename generator.

Builds Russian and Ukrainian looking filenames with:
- one to three words joined by space, underscore, dash or run together
- capitalised, lowercase or uppercase styling
- an optional number and a common file extension
- the name encoded into one of the legacy Cyrillic encodings

Used for fixtures and for evaluating the detector without real archives.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from runzip.charsets import LEGACY_ENCODINGS, Encoding

RUSSIAN_WORDS: Sequence[str] = (
    "отчет", "договор", "счет", "акт", "приказ", "справка", "письмо", "протокол",
    "заявление", "смета", "фотографии", "документы", "презентация", "расписание",
    "бухгалтерия", "проект", "сводка", "продажи", "квартал", "годовой", "новый",
    "копия", "итоги", "план", "работы", "клиенты", "поставщики", "инструкция",
)  # fmt: skip
UKRAINIAN_WORDS: Sequence[str] = (
    "звіт", "рахунок", "відомість", "їжа", "пояснення", "ґанок", "інструкція",
    "засідання", "навчання", "кошторис",
)  # fmt: skip
EXTENSIONS: Sequence[str] = (".txt", ".doc", ".docx", ".xls", ".xlsx", ".pdf", ".jpg", "")
SEPARATORS: Sequence[str] = (" ", "_", "-", "")


@dataclass
class SyntheticName:
    text: str
    encoding: Encoding
    raw: bytes


def _style(word: str, rng: random.Random) -> str:
    roll = rng.random()
    if roll < 0.5:
        return word.capitalize()
    if roll < 0.85:
        return word
    return word.upper()


def _words_for(encoding: Encoding) -> list[str]:
    words = list(RUSSIAN_WORDS)
    for word in UKRAINIAN_WORDS:
        try:
            word.encode(encoding.codec)
            word.upper().encode(encoding.codec)
        except UnicodeEncodeError:
            continue  # koi8-r and cp866 lack some Ukrainian letters
        words.append(word)
    return words


def build_name(rng: random.Random, words: Sequence[str]) -> str:
    parts = [_style(rng.choice(words), rng) for _ in range(rng.randint(1, 3))]
    name = rng.choice(SEPARATORS).join(parts)
    if rng.random() < 0.4:
        name += f"_{rng.randint(1, 2024)}"
    return name + rng.choice(EXTENSIONS)


def generate_filenames(
    count: int = 32,
    *,
    seed: int = 1234,
    encodings: Sequence[Encoding] = LEGACY_ENCODINGS,
) -> list[SyntheticName]:
    """Generate ``count`` names per encoding, reproducible from ``seed``."""
    rng = random.Random(seed)
    names: list[SyntheticName] = []
    for encoding in encodings:
        words = _words_for(encoding)
        for _ in range(count):
            text = build_name(rng, words)
            raw = text.encode(encoding.codec)
            names.append(SyntheticName(text=text, encoding=encoding, raw=raw))
    return names
