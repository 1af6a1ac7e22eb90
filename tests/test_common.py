"""Tests for cuecraft.common utilities."""

import math

import pytest

from cuecraft.common import (
    first_argmax,
    local_peak_strengths,
    normalize_token,
    population_variance,
    safe_duration,
    tokens_match,
    windowed_neighbor_means,
)


class TestWindowedNeighborMeans:
    def test_clips_at_boundaries(self):
        means = windowed_neighbor_means([1, 2, 3, 4, 5], 1)
        assert list(means) == pytest.approx([1.5, 2.0, 3.0, 4.0, 4.5])

    def test_window_larger_than_stream(self):
        means = windowed_neighbor_means([0.9, 0.1, 0.9, 0.1], 10)
        assert list(means) == pytest.approx([0.5] * 4)

    def test_empty(self):
        assert len(windowed_neighbor_means([], 3)) == 0


class TestLocalPeakStrengths:
    def test_isolated_peak(self):
        means, strengths = local_peak_strengths([0.0, 1.0, 0.0], 1)
        assert list(means) == pytest.approx([0.5, 1 / 3, 0.5])
        assert strengths[1] == pytest.approx(2 / 3)
        assert strengths[0] == pytest.approx(-0.5)


class TestPopulationVariance:
    def test_divides_by_n(self):
        assert population_variance([1.0, 3.0]) == pytest.approx(1.0)

    def test_constant(self):
        assert population_variance([0.5, 0.5, 0.5]) == 0.0

    def test_empty(self):
        assert population_variance([]) == 0.0


class TestSafeDuration:
    @pytest.mark.parametrize("value", [None, 0, -3.0, math.nan, math.inf, "abc"])
    def test_unusable_values_fall_back(self, value):
        assert safe_duration(value, 20.0) == 20.0

    def test_valid_value_kept(self):
        assert safe_duration(15, 20.0) == 15.0


class TestNormalizeToken:
    def test_strips_punctuation_and_lowercases(self):
        assert normalize_token("Hello!") == "hello"
        assert normalize_token("It's") == "its"

    def test_none_is_empty(self):
        assert normalize_token(None) == ""


class TestTokensMatch:
    def test_either_direction(self):
        assert tokens_match("fire", "campfire")
        assert tokens_match("campfire", "fire")

    def test_empty_never_matches(self):
        assert not tokens_match("", "fire")
        assert not tokens_match("fire", "")

    def test_unrelated(self):
        assert not tokens_match("water", "fire")


class TestFirstArgmax:
    def test_first_occurrence_on_tie(self):
        assert first_argmax([1.0, 3.0, 3.0]) == 1

    def test_empty(self):
        assert first_argmax([]) == -1
