"""Tests for the canonical text comparison form."""

import unicodedata

import pytest

from resource_search.services.text_normalizer import normalize, normalize_optional, strip_diacritics

SAMPLES = [
    "",
    "   ",
    "Intro to Python",
    "  Advanced\tPython \n Programming  ",
    "Café Crème Brûlée",
    "ÀÉÎÕÜ àéîõü ñÑ çÇ",
    "Straße",
    "ﬁle ﬂow",  # ligatures
    "Ｆｕｌｌｗｉｄｔｈ",
    "ǰ ẞ İstanbul",
    "Ωμέγα Σίσυφος",
    "mixed non-breaking spaces",
    "Zoë's résumé – 2024!",
]


class TestNormalize:
    def test_lowercases(self):
        assert normalize("Intro To PYTHON") == "intro to python"

    def test_strips_diacritics(self):
        assert normalize("Café Crème Brûlée") == "cafe creme brulee"

    def test_collapses_whitespace(self):
        assert normalize("  Advanced\tPython \n Programming  ") == "advanced python programming"

    def test_empty_string(self):
        assert normalize("") == ""

    def test_whitespace_only(self):
        assert normalize(" \t\n ") == ""

    def test_keeps_punctuation_and_digits(self):
        assert normalize("Python 3.12: What's New?") == "python 3.12: what's new?"

    def test_casefold_expands_sharp_s(self):
        assert normalize("Straße") == "strasse"

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = normalize(text)
        assert normalize(once) == once

    @pytest.mark.parametrize("text", SAMPLES)
    def test_no_combining_marks_remain(self, text):
        result = normalize(text)
        assert not any(unicodedata.combining(ch) for ch in result)

    @pytest.mark.parametrize("text", SAMPLES)
    def test_single_case(self, text):
        result = normalize(text)
        assert result == result.casefold()

    @pytest.mark.parametrize("text", SAMPLES)
    def test_no_outer_or_repeated_whitespace(self, text):
        result = normalize(text)
        assert result == result.strip()
        assert "  " not in result


class TestStripDiacritics:
    def test_removes_accents_keeps_case(self):
        assert strip_diacritics("Ñandú") == "Nandu"

    def test_plain_ascii_unchanged(self):
        assert strip_diacritics("plain text") == "plain text"


class TestNormalizeOptional:
    def test_none(self):
        assert normalize_optional(None) is None

    def test_blank_becomes_none(self):
        assert normalize_optional("   ") is None

    def test_value(self):
        assert normalize_optional("  Éclair ") == "eclair"
