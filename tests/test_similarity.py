"""Tests for edit distance and normalised pattern similarity."""

from __future__ import annotations

import pytest

from adaptive_memory.similarity import edit_distance, similarity


class TestEditDistance:
    """Known Levenshtein values."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("kitten", "sitting", 3),
            ("", "", 0),
            ("", "abc", 3),
            ("abc", "", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
            ("errorA", "errorA1", 1),
        ],
    )
    def test_known_values(self, a: str, b: str, expected: int) -> None:
        assert edit_distance(a, b) == expected

    def test_argument_order_does_not_matter(self) -> None:
        assert edit_distance("intention", "execution") == edit_distance("execution", "intention") == 5


class TestSimilarity:
    """Normalised similarity in [0, 1]."""

    def test_identical_strings_score_one(self) -> None:
        assert similarity("timeout on upload", "timeout on upload") == 1.0

    def test_two_empty_strings_score_one(self) -> None:
        assert similarity("", "") == 1.0

    def test_empty_against_non_empty_scores_zero(self) -> None:
        assert similarity("", "abc") == 0.0

    def test_completely_different_scores_zero(self) -> None:
        assert similarity("abc", "xyz") == 0.0

    def test_symmetric(self) -> None:
        pairs = [("kitten", "sitting"), ("errorA", "errorA1"), ("", "x"), ("retry 503", "retry 502")]
        for a, b in pairs:
            assert similarity(a, b) == similarity(b, a)

    def test_short_suffix_variant_is_above_merge_threshold(self) -> None:
        # 1 edit over 7 characters.
        assert similarity("errorA", "errorA1") == pytest.approx(6 / 7)
        assert similarity("errorA", "errorA1") > 0.8

    def test_kitten_sitting(self) -> None:
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_within_unit_interval(self) -> None:
        for a, b in [("a", "bbbbbbbb"), ("abcdef", "fedcba"), ("x" * 50, "y")]:
            assert 0.0 <= similarity(a, b) <= 1.0
