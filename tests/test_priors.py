"""Tests for preseason-rank prior construction."""

import itertools

import numpy as np
import pytest

from src.errors import DataShapeError
from src.inference.priors import prior_scores_from_ranks


def test_known_values_for_four_teams():
    # reverse ranks 4,3,2,1 -> centered 1.5,0.5,-0.5,-1.5; sd = sqrt(5/3)
    scores = prior_scores_from_ranks([1, 2, 3, 4])
    expected = np.array([1.5, 0.5, -0.5, -1.5]) / (2 * np.sqrt(5.0 / 3.0))
    np.testing.assert_allclose(scores, expected)


@pytest.mark.parametrize("ranks", list(itertools.permutations([1, 2, 3, 4, 5])))
def test_every_permutation_is_centered_and_best_is_largest(ranks):
    scores = prior_scores_from_ranks(ranks)
    assert abs(scores.mean()) < 1e-12
    assert np.argmax(scores) == ranks.index(1)
    assert np.argmin(scores) == ranks.index(5)


def test_scaled_to_half_unit_sd():
    scores = prior_scores_from_ranks(list(range(1, 33)))
    assert scores.std(ddof=1) == pytest.approx(0.5)


def test_recomputed_for_each_roster():
    small = prior_scores_from_ranks([2, 1])
    large = prior_scores_from_ranks([2, 1, 3])
    assert small.shape == (2,)
    assert large.shape == (3,)
    assert small[1] != large[1]


@pytest.mark.parametrize("ranks", [
    [1, 1, 2],
    [0, 1, 2],
    [1, 2, 4],
    [1],
    [],
    [1.5, 2, 3],
])
def test_invalid_rank_lists_raise(ranks):
    with pytest.raises(DataShapeError):
        prior_scores_from_ranks(ranks)
