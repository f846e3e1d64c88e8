"""Tests for text normalisation."""
from __future__ import annotations

import pytest

from hrdoc.ingest.normalization import (
    PDF,
    RLE,
    fix_bidirectional_text,
    fix_ocr_misreads,
    normalize_arabic,
    normalize_text,
)


def test_whitespace_and_blank_lines_are_collapsed() -> None:
    raw = "Hello   world\t\tfoo\r\nbar\n\n\n\nbaz  "

    assert normalize_text(raw) == "Hello world\tfoo\nbar\n\nbaz"


def test_control_characters_and_encoding_artifacts_are_removed() -> None:
    assert normalize_text("\ufeffa\x00b\x07c\ufffd") == "abc"


def test_unicode_line_separators_become_newlines() -> None:
    assert normalize_text("first\u2028second\rthird") == "first\nsecond\nthird"


def test_arabic_diacritics_and_letter_variants_are_folded() -> None:
    raw = "الإجازة\u064f السنوية\u064f"

    assert normalize_text(raw) == f"{RLE}الاجازه السنويه{PDF}"


def test_arabic_indic_digits_become_ascii() -> None:
    assert normalize_text("راتب ١٢٣٤") == f"{RLE}راتب 1234{PDF}"
    assert normalize_arabic("۱۲") == "12"


def test_alef_maksura_becomes_yaa() -> None:
    assert normalize_arabic("على") == "علي"


def test_joiners_next_to_arabic_letters_are_removed() -> None:
    assert normalize_text("بر\u200cنامج") == f"{RLE}برنامج{PDF}"


def test_mixed_script_lines_are_not_wrapped() -> None:
    assert normalize_text("عقد employment") == "عقد employment"


def test_only_purely_arabic_lines_are_wrapped() -> None:
    text = "سياسه\nPolicy\n\nاجازه"

    assert fix_bidirectional_text(text) == f"{RLE}سياسه{PDF}\nPolicy\n\n{RLE}اجازه{PDF}"


def test_latin_ocr_corrections_can_be_disabled() -> None:
    assert normalize_text("corner office", ocr_corrections=False) == "corner office"
    assert normalize_text("corner office") == "comer office"


def test_ocr_misreads_are_fixed_until_stable() -> None:
    assert fix_ocr_misreads("rnanager l5 vvork O7") == "manager 15 work 07"
    assert fix_ocr_misreads("rnanager", latin=False) == "rnanager"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "Plain English text.\n\n\n\nWith   spacing.",
        "rnanager l5 vvork",
        "قسم l5",
        "الإجازة\u064f السنوية\u064f\n\nLeave policy  applies.",
        "\u202bسياسه\u202c\n\tمقدمه\t\tintro",
        "سطر أول\r\n\r\n\r\nسطر ثان\u064d ١٢",
        "cafe\x01\u0301",
        "e\u064b\u0301 قسم",
    ],
)
def test_normalize_text_is_idempotent(raw: str) -> None:
    once = normalize_text(raw)

    assert normalize_text(once) == once
    assert normalize_text(once, ocr_corrections=False) == once


def test_marks_exposed_by_removed_controls_are_composed() -> None:
    assert normalize_text("cafe\x01\u0301") == "caf\u00e9"
