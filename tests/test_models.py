"""Unit tests for roster and game models."""

import pytest

from src.models.game import GameObservation, UpcomingGame
from src.models.team import Team


def test_team_round_trip():
    team = Team(name="Hawks", index=2, preseason_rank=5, prior_score=-0.25)
    assert Team.from_dict(team.to_dict()) == team


@pytest.mark.parametrize("kwargs", [
    {"name": "  ", "index": 0, "preseason_rank": 1},
    {"name": "Hawks", "index": -1, "preseason_rank": 1},
    {"name": "Hawks", "index": 0, "preseason_rank": 0},
])
def test_team_validation(kwargs):
    with pytest.raises(ValueError):
        Team(**kwargs)


def test_game_differentials():
    game = GameObservation(home_index=0, away_index=1, home_score=10, away_score=19,
                           home_injuries=4, away_injuries=1)
    assert game.raw_differential == -9
    assert game.transformed_differential == pytest.approx(-3.0)
    assert game.injury_differential == 3


def test_tied_game_transforms_to_zero():
    game = GameObservation(home_index=0, away_index=1, home_score=20, away_score=20)
    assert game.transformed_differential == 0.0
    assert game.injury_differential == 0


def test_missing_injuries_count_as_zero():
    fixture = UpcomingGame(home_index=3, away_index=1, week=7, away_injuries=2)
    assert fixture.injury_differential == -2
    assert fixture.to_dict()["home_injuries"] == 0


def test_games_are_immutable():
    game = GameObservation(home_index=0, away_index=1, home_score=1, away_score=0)
    with pytest.raises(AttributeError):
        game.home_score = 5
