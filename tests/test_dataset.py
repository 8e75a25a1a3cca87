"""Tests for season data assembly and validation."""

import numpy as np
import pandas as pd
import pytest

from src.data.dataset import SeasonData, build_roster
from src.errors import DataShapeError, UnresolvedTeamNameError


@pytest.fixture
def teams():
    return [
        {"team_name": "Alpha", "preseason_rank": 2},
        {"team_name": "Bravo", "preseason_rank": 1},
        {"team_name": "Charlie", "preseason_rank": 4},
        {"team_name": "Delta", "preseason_rank": 3},
    ]


@pytest.fixture
def games():
    return [
        {"week": 1, "home_team": "Alpha", "home_score": 24, "visiting_team": "Bravo",
         "visiting_score": 15, "home_injuries": 2, "visiting_injuries": 5},
        {"week": 1, "home_team": "Charlie", "home_score": 10, "visiting_team": "Delta",
         "visiting_score": 14},
        {"week": 2, "home_team": "Delta", "home_score": 21, "visiting_team": "Alpha",
         "visiting_score": 21},
    ]


@pytest.fixture
def upcoming():
    return [
        {"week": 3, "home_team": "Bravo", "visiting_team": "Charlie"},
        {"week": 4, "home_team": "Alpha", "visiting_team": "Delta",
         "home_injuries": 1, "visiting_injuries": 3},
    ]


def test_roster_priors_follow_rank(teams):
    roster = build_roster(teams)
    assert [t.index for t in roster] == [0, 1, 2, 3]
    best = max(roster, key=lambda t: t.prior_score)
    assert best.name == "Bravo"
    assert abs(sum(t.prior_score for t in roster)) < 1e-12


def test_observation_arrays(teams, games, upcoming):
    season = SeasonData.from_records(teams, games, upcoming)
    arrays = season.observation_arrays()

    assert season.n_games == 3
    np.testing.assert_array_equal(arrays["home_idx"], [0, 2, 3])
    np.testing.assert_array_equal(arrays["away_idx"], [1, 3, 0])
    np.testing.assert_allclose(arrays["y"], [3.0, -2.0, 0.0])
    # missing injury counts are zero
    np.testing.assert_allclose(arrays["injury_diff"], [-3.0, 0.0, 0.0])


def test_upcoming_arrays(teams, games, upcoming):
    season = SeasonData.from_records(teams, games, upcoming)
    arrays = season.upcoming_arrays()
    np.testing.assert_array_equal(arrays["home_idx"], [1, 0])
    np.testing.assert_array_equal(arrays["away_idx"], [2, 3])
    np.testing.assert_allclose(arrays["injury_diff"], [0.0, -2.0])


def test_game_swap_negates_transformed_differential(teams):
    forward = SeasonData.from_records(teams, [
        {"week": 1, "home_team": "Alpha", "home_score": 30, "visiting_team": "Bravo", "visiting_score": 14},
    ])
    swapped = SeasonData.from_records(teams, [
        {"week": 1, "home_team": "Bravo", "home_score": 14, "visiting_team": "Alpha", "visiting_score": 30},
    ])
    assert forward.games[0].transformed_differential == 4.0
    assert swapped.games[0].transformed_differential == -4.0


def test_unresolved_team_name_is_fatal(teams):
    bad = [{"week": 1, "home_team": "Alpha", "home_score": 1, "visiting_team": "Echo", "visiting_score": 0}]
    with pytest.raises(UnresolvedTeamNameError) as excinfo:
        SeasonData.from_records(teams, bad)
    assert excinfo.value.name == "Echo"


def test_unresolved_name_in_upcoming_is_fatal(teams, games):
    with pytest.raises(UnresolvedTeamNameError):
        SeasonData.from_records(teams, games, [{"week": 3, "home_team": "Foxtrot", "visiting_team": "Alpha"}])


def test_missing_score_is_shape_error(teams):
    bad = [{"week": 1, "home_team": "Alpha", "home_score": 10, "visiting_team": "Bravo"}]
    with pytest.raises(DataShapeError, match="visiting_score"):
        SeasonData.from_records(teams, bad)


def test_team_cannot_play_itself(teams):
    bad = [{"week": 1, "home_team": "Alpha", "home_score": 10, "visiting_team": "alpha", "visiting_score": 3}]
    with pytest.raises(DataShapeError):
        SeasonData.from_records(teams, bad)


def test_non_integer_score_rejected(teams):
    bad = [{"week": 1, "home_team": "Alpha", "home_score": 10.5, "visiting_team": "Bravo", "visiting_score": 3}]
    with pytest.raises(DataShapeError):
        SeasonData.from_records(teams, bad)


def test_invalid_ranks_rejected(games):
    teams = [{"team_name": "Alpha", "preseason_rank": 1}, {"team_name": "Bravo", "preseason_rank": 1}]
    with pytest.raises(DataShapeError):
        SeasonData.from_records(teams, [])


def test_from_schedule_splits_on_scores(teams):
    schedule = pd.DataFrame([
        {"week": 1, "home_team": "Alpha", "home_score": 20, "visiting_team": "Bravo", "visiting_score": 17},
        {"week": 2, "home_team": "Charlie", "home_score": None, "visiting_team": "Delta", "visiting_score": None},
        {"week": 2, "home_team": "Bravo", "home_score": 3, "visiting_team": "Delta", "visiting_score": np.nan},
    ])
    season = SeasonData.from_schedule(teams, schedule)
    assert season.n_games == 1
    assert len(season.upcoming) == 2
    assert season.upcoming[0].home_index == 2


def test_injury_table_fills_missing_counts(teams, games, upcoming):
    injuries = [
        {"week": 1, "team": "Charlie", "injuries": 4},
        {"week": 1, "team": "Delta", "injuries": 1},
        # explicit per-game counts win over the table
        {"week": 1, "team": "Alpha", "injuries": 9},
        {"week": 3, "team": "Bravo", "injuries": 2},
    ]
    season = SeasonData.from_records(teams, games, upcoming, injuries=injuries)
    np.testing.assert_allclose(season.observation_arrays()["injury_diff"], [-3.0, 3.0, 0.0])
    np.testing.assert_allclose(season.upcoming_arrays()["injury_diff"], [2.0, -2.0])


def test_missing_injuries_equal_explicit_zero(teams, games):
    implicit = SeasonData.from_records(teams, games, [{"week": 3, "home_team": "Bravo", "visiting_team": "Charlie"}])
    explicit = SeasonData.from_records(teams, games, [{
        "week": 3, "home_team": "Bravo", "visiting_team": "Charlie",
        "home_injuries": 0, "visiting_injuries": 0,
    }])
    np.testing.assert_array_equal(
        implicit.upcoming_arrays()["injury_diff"], explicit.upcoming_arrays()["injury_diff"]
    )


def test_week_filters(teams, games, upcoming):
    season = SeasonData.from_records(teams, games, upcoming)
    assert season.through_week(1).n_games == 2
    assert [g.week for g in season.for_week(4).upcoming] == [4]
    # original is untouched
    assert season.n_games == 3


def test_games_are_immutable(teams, games):
    season = SeasonData.from_records(teams, games)
    with pytest.raises(AttributeError):
        season.games[0].home_score = 99
