"""
Tests for text normalization and keyword parsing.
"""

import pytest

from campusbot.core.errors import MalformedEntryError
from campusbot.utils.tokenizer import normalize, parse_keywords, tokenize


class TestNormalize:

    def test_lowercases_and_strips_punctuation(self):
        assert normalize("Hello, World!!") == "hello world"

    def test_keeps_hangul_syllables_and_digits(self):
        assert normalize("2025학년도 입학?!") == "2025학년도 입학"

    def test_drops_hangul_jamo(self):
        assert normalize("ㅋㅋ 좋아요") == "좋아요"

    def test_collapses_and_trims_whitespace(self):
        assert normalize("  campus \t\n  TOUR   ") == "campus tour"

    @pytest.mark.parametrize("raw", ["", None, "   ", "?!...", "ㅠㅠ"])
    def test_empty_results(self, raw):
        assert normalize(raw) == ""

    def test_is_idempotent(self):
        once = normalize("  안녕하세요,   Hello!! ")
        assert normalize(once) == once


class TestTokenize:

    def test_drops_short_tokens_and_keeps_order_and_duplicates(self):
        assert tokenize("a bb ccc bb 입 입학") == ["bb", "ccc", "bb", "입학"]

    def test_empty(self):
        assert tokenize("") == []


class TestParseKeywords:

    def test_comma_joined_string(self):
        assert parse_keywords("안녕, Hello,,hello , hi") == ("안녕", "hello", "hi")

    def test_sequence_input(self):
        assert parse_keywords(["A", "b!", "a"]) == ("a", "b")

    def test_none_is_empty(self):
        assert parse_keywords(None) == ()

    def test_blank_string_is_empty(self):
        assert parse_keywords(" , ,") == ()

    def test_unsupported_type_is_malformed(self):
        with pytest.raises(MalformedEntryError) as exc:
            parse_keywords(42, entry_id=9)
        assert exc.value.entry_id == 9

    def test_non_string_element_is_malformed(self):
        with pytest.raises(MalformedEntryError):
            parse_keywords(["ok", 3])
