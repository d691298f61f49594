import pytest

from runzip.charsets import Encoding
from runzip.frequency import (
    ASCII_WEIGHT,
    UNSEEN_PENALTY,
    WEIGHTS,
    best_candidate,
    build_histogram,
    case_flips,
    cyrillic_factor,
    fold,
    is_plausible_filename,
    rank_candidates,
    score_candidate,
    stray_symbols,
)

# Real-world name shapes: CamelCase, mixed-case words, typographic symbols.
NAME_CASES = [
    (text, codec)
    for text in ("ОтчетЗаМарт.txt", "НовыйДокумент.docx", "Годовой Отчет 2020.xls")
    for codec in ("cp1251", "cp866", "koi8_r", "koi8_u")
] + [
    ("Цена 100€.xls", "cp1251"),
    ("Договор © ООО.doc", "cp1251"),
    ("Фото°.jpg", "cp1251"),
    ("Фото°.jpg", "cp866"),
    ("Фото°.jpg", "koi8_r"),
    ("Фото°.jpg", "koi8_u"),
]


def _by_encoding(raw: bytes) -> dict[Encoding, tuple[int, int]]:
    return {s.encoding: (s.recognized, s.factor) for s in rank_candidates(raw)}


def test_weight_table_is_indexed_by_koi8_uppercase_positions():
    assert len(WEIGHTS) == 256
    assert WEIGHTS["О".encode("koi8_u")[0]] == 1097
    assert WEIGHTS["І".encode("koi8_u")[0]] > 0
    # lowercase positions are reached through fold()
    assert WEIGHTS["о".encode("koi8_u")[0]] == 0
    assert WEIGHTS[ord("a")] == ASCII_WEIGHT
    assert WEIGHTS[0x00] == 0


def test_fold_maps_lowercase_koi8_letters_to_uppercase():
    assert fold("а".encode("koi8_u")[0]) == "А".encode("koi8_u")[0]
    assert fold("і".encode("koi8_u")[0]) == "І".encode("koi8_u")[0]
    assert fold("ґ".encode("koi8_u")[0]) == "Ґ".encode("koi8_u")[0]
    assert fold("ё".encode("koi8_u")[0]) == "Ё".encode("koi8_u")[0]
    assert fold(ord("A")) == ord("A")


def test_factor_rewards_seen_letters_and_penalises_missing_ones():
    base = cyrillic_factor(build_histogram(""))
    assert base < 0
    two_o = cyrillic_factor(build_histogram("оо"))
    # one bucket moves from the -10 penalty to a count of 2
    assert two_o - base == 1097 * (2 + UNSEEN_PENALTY)


def test_plausible_filename_needs_printable_text_with_cyrillic():
    assert is_plausible_filename("Привет.txt")
    assert is_plausible_filename("ОтчетЗаМарт.txt")
    assert is_plausible_filename("пРИВЕТ.txt")
    assert is_plausible_filename("Цена 100€.xls")
    assert is_plausible_filename("╧Привет")
    assert not is_plausible_filename("readme.txt")
    assert not is_plausible_filename("При\u00a0вет")
    assert not is_plausible_filename("При\u00adвет")


def test_case_flips_and_stray_symbols():
    assert case_flips("ОтчетЗаМарт") == 2
    assert case_flips("оПХБЕР") == 1
    assert case_flips("ПРИВЕТ мир") == 0
    assert stray_symbols("╧Привет") == 1
    assert stray_symbols("Цена 100€ «итог»") == 0


def test_case_flips_lower_the_factor_without_zeroing_the_candidate():
    camel = score_candidate("ОтчетЗаМарт.txt".encode("cp1251"), Encoding.WINDOWS_1251)
    assert camel.recognized == 11
    flat = score_candidate("Отчетзамарт.txt".encode("cp1251"), Encoding.WINDOWS_1251)
    assert flat.recognized == 11
    assert flat.factor > camel.factor


@pytest.mark.parametrize(("text", "codec"), NAME_CASES)
def test_top_candidate_recovers_real_world_names(text, codec):
    raw = text.encode(codec)
    best = best_candidate(rank_candidates(raw))
    assert best is not None
    assert raw.decode(best.encoding.codec) == text


def test_windows_1251_name_is_ranked_first():
    raw = "Привет.txt".encode("cp1251")
    scores = _by_encoding(raw)
    assert scores[Encoding.WINDOWS_1251][0] == 6
    # cp866 reads the first letter as a box drawing character
    assert scores[Encoding.CP866][0] == 5
    best = best_candidate(rank_candidates(raw))
    assert best is not None
    assert best.encoding is Encoding.WINDOWS_1251


def test_name_valid_in_one_encoding_only_scores_there():
    # cp1251 reads Serbian letters, koi8 reads 0x9A as a no-break space
    raw = "ОБЪЕКТ.txt".encode("cp866")
    ranked = rank_candidates(raw)
    assert ranked[0].encoding is Encoding.CP866
    assert ranked[0].recognized == 6
    assert all(s.recognized == 0 for s in ranked[1:])


def test_koi8_russian_name_prefers_koi8_r_on_a_tie():
    raw = "Привет.txt".encode("koi8_r")
    ranked = rank_candidates(raw)
    assert ranked[0].encoding is Encoding.KOI8_R
    assert ranked[1].encoding is Encoding.KOI8_U
    assert ranked[0].recognized == ranked[1].recognized == 6


def test_ukrainian_koi8_u_name_beats_koi8_r():
    raw = "Звіт.txt".encode("koi8_u")
    scores = _by_encoding(raw)
    assert scores[Encoding.KOI8_U][0] == 4
    assert scores[Encoding.KOI8_R][0] == 3
    assert rank_candidates(raw)[0].encoding is Encoding.KOI8_U


def test_lowercase_name_wins_on_factor_when_counts_tie():
    raw = "привет.txt".encode("cp1251")
    scores = _by_encoding(raw)
    # koi8 reads these bytes as a plausible all-caps word of the same length
    assert scores[Encoding.KOI8_R][0] == scores[Encoding.WINDOWS_1251][0]
    assert scores[Encoding.WINDOWS_1251][1] > scores[Encoding.KOI8_R][1]
    assert rank_candidates(raw)[0].encoding is Encoding.WINDOWS_1251


def test_undecodable_candidate_scores_zero():
    score = score_candidate(b"\x98\xcf\xf0", Encoding.WINDOWS_1251)
    assert (score.recognized, score.factor) == (0, 0)


def test_no_cyrillic_means_no_match():
    assert best_candidate(rank_candidates(b"readme.txt")) is None
    assert best_candidate([]) is None


def test_single_letter_shared_by_several_candidates_is_no_match():
    # "Я" in koi8-r is "с" in windows-1251 and "ё" in cp866
    ranked = rank_candidates("Я.txt".encode("koi8_r"))
    assert sum(s.recognized > 0 for s in ranked) > 1
    assert best_candidate(ranked) is None
    assert best_candidate(rank_candidates("café.txt".encode())) is None
