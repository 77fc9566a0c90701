"""
Tests for intake_core/utils/string_utils.py: normalization and Jaro-Winkler similarity.
"""

import pytest

from intake_core.utils.string_utils import (
    common_prefix_length,
    jaro_similarity,
    jaro_winkler_similarity,
    normalize_for_matching,
    normalize_whitespace,
)


# ---------------------------------------------------------------------------
# normalize_whitespace / normalize_for_matching
# ---------------------------------------------------------------------------


class TestNormalizeWhitespace:

    def test_collapses_multiple_spaces(self):
        assert normalize_whitespace("hello   world") == "hello world"

    def test_collapses_tabs_and_newlines(self):
        assert normalize_whitespace("hello\t\tworld\n\nfoo") == "hello world foo"

    def test_strips_leading_trailing(self):
        assert normalize_whitespace("  hi  ") == "hi"

    def test_empty_string(self):
        assert normalize_whitespace("") == ""


class TestNormalizeForMatching:

    def test_lowercases(self):
        assert normalize_for_matching("McDonald") == "mcdonald"

    def test_trims_and_collapses(self):
        assert normalize_for_matching("  Mary   Ann ") == "mary ann"


# ---------------------------------------------------------------------------
# jaro_similarity
# ---------------------------------------------------------------------------


class TestJaroSimilarity:

    def test_classic_transposition(self):
        assert jaro_similarity("martha", "marhta") == pytest.approx(0.9444, abs=1e-4)

    def test_dixon_dicksonx(self):
        assert jaro_similarity("dixon", "dicksonx") == pytest.approx(0.7667, abs=1e-4)

    def test_no_common_characters(self):
        assert jaro_similarity("abc", "xyz") == 0.0

    def test_empty_inputs(self):
        assert jaro_similarity("", "abc") == 0.0
        assert jaro_similarity("abc", "") == 0.0
        assert jaro_similarity("", "") == 0.0

    def test_single_characters(self):
        assert jaro_similarity("a", "a") == 1.0
        assert jaro_similarity("a", "b") == 0.0


# ---------------------------------------------------------------------------
# common_prefix_length
# ---------------------------------------------------------------------------


class TestCommonPrefixLength:

    def test_partial_prefix(self):
        assert common_prefix_length("michael", "mikey") == 2

    def test_capped_at_four(self):
        assert common_prefix_length("abcdefg", "abcdefh") == 4

    def test_custom_limit(self):
        assert common_prefix_length("abcdefg", "abcdefh", limit=6) == 6

    def test_no_prefix(self):
        assert common_prefix_length("abc", "xbc") == 0


# ---------------------------------------------------------------------------
# jaro_winkler_similarity
# ---------------------------------------------------------------------------


class TestJaroWinklerSimilarity:

    @pytest.mark.parametrize(
        "s1,s2,expected",
        [
            ("martha", "marhta", 0.9611),
            ("dixon", "dicksonx", 0.8133),
            ("john", "jon", 0.9333),
            ("jane", "john", 0.7000),
            ("michael", "mikey", 0.7410),
            ("002345", "002346", 0.9333),
            ("123456", "654321", 0.3889),
        ],
    )
    def test_known_values(self, s1, s2, expected):
        assert jaro_winkler_similarity(s1, s2) == pytest.approx(expected, abs=1e-4)

    @pytest.mark.parametrize(
        "s1,s2",
        [
            ("martha", "marhta"),
            ("dixon", "dicksonx"),
            ("abcd", "badc"),
            ("smith", "smyth"),
            ("a", "ab"),
            ("crate", "trace"),
        ],
    )
    def test_symmetric(self, s1, s2):
        assert jaro_winkler_similarity(s1, s2) == jaro_winkler_similarity(s2, s1)

    @pytest.mark.parametrize("value", ["a", "smith", "002345", "Mary Ann"])
    def test_reflexive(self, value):
        assert jaro_winkler_similarity(value, value) == 1.0

    def test_zero_when_either_empty(self):
        assert jaro_winkler_similarity("", "smith") == 0.0
        assert jaro_winkler_similarity("smith", "") == 0.0
        assert jaro_winkler_similarity("", "") == 0.0

    def test_case_sensitive(self):
        assert jaro_winkler_similarity("Smith", "smith") < 1.0

    def test_bounded(self):
        score = jaro_winkler_similarity("abcdefgh", "abcdefgz")
        assert 0.0 <= score <= 1.0

    def test_prefix_boost_raises_score(self):
        assert jaro_winkler_similarity("martha", "marhta") > jaro_similarity(
            "martha", "marhta"
        )
