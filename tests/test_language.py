"""Tests for script-based language detection."""
from __future__ import annotations

import pytest

from hrdoc.ingest.language import (
    LanguageDetector,
    arabic_ratio,
    contains_arabic,
    contains_english,
    count_words,
    detect_language,
    strip_bidi_marks,
)
from hrdoc.ingest.models import Language


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", Language.EN),
        ("   ", Language.EN),
        ("Hello world", Language.EN),
        ("مرحبا بكم في الشركة", Language.AR),
        ("سياسة الإجازات Leave policy", Language.MIXED),
        ("\u202bمرحبا\u202c", Language.AR),
    ],
)
def test_detect_language(text: str, expected: Language) -> None:
    assert detect_language(text) is expected
    assert LanguageDetector().detect(text) is expected


def test_arabic_ratio_ignores_whitespace_and_bidi_marks() -> None:
    assert arabic_ratio("\u202bاب\u202c ab") == 0.5
    assert arabic_ratio("") == 0.0


def test_script_flags() -> None:
    assert contains_arabic("Policy سياسه")
    assert contains_english("Policy سياسه")
    assert not contains_arabic("Policy 2024")
    assert not contains_english("سياسه ٢٠٢٤")


def test_count_words_ignores_digits_and_punctuation() -> None:
    assert count_words("Hello, world! مرحبا 123 -") == 3


def test_strip_bidi_marks() -> None:
    assert strip_bidi_marks("\u202bنص\u202c\u200f") == "نص"
