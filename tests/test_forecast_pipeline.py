"""End-to-end tests for the season forecasting pipeline."""

import json

import numpy as np
import pandas as pd
import pytest

from src.data.dataset import SeasonData
from src.errors import DataShapeError
from src.inference.cache import FitCache
from src.inference.model import ModelConfig, TeamQualityModel
from src.pipeline.forecast import ForecastConfig, SeasonForecaster, _records, run_forecast

pytestmark = pytest.mark.filterwarnings("ignore::src.errors.ConvergenceWarning")


def _fast(variant="base", **kwargs):
    settings = dict(draws=200, tune=200, chains=2, cores=1, random_seed=7)
    settings.update(kwargs)
    return ModelConfig.for_variant(variant, **settings)


@pytest.fixture
def minimal_season():
    teams = [{"team_name": f"team{i}", "preseason_rank": i} for i in range(1, 5)]
    games = [
        {"week": 1, "home_team": "team1", "home_score": 19, "visiting_team": "team2", "visiting_score": 10},
        {"week": 1, "home_team": "team3", "home_score": 11, "visiting_team": "team4", "visiting_score": 10},
    ]
    upcoming = [{"week": 2, "home_team": "team1", "visiting_team": "team3"}]
    return SeasonData.from_records(teams, games, upcoming)


@pytest.fixture
def weekly_season():
    teams = [
        {"team_name": "Hawks", "preseason_rank": 1},
        {"team_name": "Owls", "preseason_rank": 2},
        {"team_name": "Crows", "preseason_rank": 3},
        {"team_name": "Wrens", "preseason_rank": 4},
    ]
    games = [
        {"week": 1, "home_team": "Hawks", "home_score": 28, "visiting_team": "Wrens", "visiting_score": 10},
        {"week": 1, "home_team": "Owls", "home_score": 20, "visiting_team": "Crows", "visiting_score": 17},
        {"week": 2, "home_team": "Crows", "home_score": 13, "visiting_team": "Hawks", "visiting_score": 24},
        {"week": 2, "home_team": "Wrens", "home_score": 14, "visiting_team": "Owls", "visiting_score": 21},
        {"week": 3, "home_team": "Hawks", "home_score": 17, "visiting_team": "Owls", "visiting_score": 16},
        {"week": 3, "home_team": "Crows", "home_score": 23, "visiting_team": "Wrens", "visiting_score": 20},
    ]
    upcoming = [
        {"week": 4, "home_team": "Owls", "visiting_team": "Hawks"},
        {"week": 4, "home_team": "Wrens", "visiting_team": "Crows"},
        {"week": 5, "home_team": "Hawks", "visiting_team": "Crows"},
    ]
    return SeasonData.from_records(teams, games, upcoming)


def test_minimal_scenario(minimal_season):
    result = run_forecast(minimal_season, variant="base", draws=200, tune=200, chains=2,
                          cores=1, random_seed=3)

    table = result.prediction_table
    assert len(table) == 1
    row = table.iloc[0]
    assert row["home_team"] == "team1"
    assert row["visiting_team"] == "team3"
    assert 0.0 <= row["win_probability"] <= 1.0
    assert not row["predicted_se"] < 0.0
    # Two games under flat priors can leave the posterior improper; that must be flagged.
    if result.converged:
        assert np.isfinite(row["predicted_spread"])
        assert np.isfinite(row["predicted_se"])
    json.loads(json.dumps(result.to_dict(), allow_nan=False, default=float))

    assert result.team_table["team_name"].tolist() == ["team1", "team2", "team3", "team4"]
    assert result.predictive.spreads.shape == (400, 1)
    assert result.parameter_table["parameter"].tolist() == ["b", "sigma_a", "sigma_y"]


def test_result_serializes_to_json(minimal_season):
    result = run_forecast(minimal_season, variant="home", draws=100, tune=100, chains=2,
                          cores=1, random_seed=3)
    payload = json.loads(json.dumps(result.to_dict(), default=float))
    assert payload["model"] == "home"
    assert len(payload["predictions"]) == 1
    assert len(payload["teams"]) == 4
    assert "home_adv" in [p["parameter"] for p in payload["parameters"]]
    assert isinstance(payload["converged"], bool)


def test_week_filters(weekly_season):
    config = ForecastConfig(model=_fast(), through_week=2, predict_week=4, use_cache=False)
    result = SeasonForecaster(config).run(weekly_season)

    assert result.fit.samples["a"].shape[1] == 4
    assert len(result.prediction_table) == 2
    assert set(result.prediction_table["week"]) == {4}


def test_through_week_before_any_game(weekly_season):
    config = ForecastConfig(model=_fast(), through_week=0, use_cache=False)
    with pytest.raises(DataShapeError):
        SeasonForecaster(config).run(weekly_season)


def test_same_seed_same_forecast(weekly_season):
    config = ForecastConfig(model=_fast(random_seed=11), use_cache=False)
    first = SeasonForecaster(config).run(weekly_season)
    second = SeasonForecaster(config).run(weekly_season)
    np.testing.assert_allclose(
        first.prediction_table["predicted_spread"], second.prediction_table["predicted_spread"]
    )


def test_cache_reuses_fit(weekly_season):
    cache = FitCache()
    config = ForecastConfig(model=_fast(), predict_week=4)
    first = SeasonForecaster(config, cache=cache).run(weekly_season)
    second = SeasonForecaster(ForecastConfig(model=_fast(), predict_week=5), cache=cache).run(weekly_season)

    assert second.fit is first.fit
    assert cache.hits == 1
    assert len(second.prediction_table) == 1


def test_cache_invalidated_by_new_games(weekly_season):
    cache = FitCache()
    forecaster = SeasonForecaster(ForecastConfig(model=_fast()), cache=cache)
    forecaster.run(weekly_season.through_week(2))
    forecaster.run(weekly_season)
    assert cache.hits == 0
    assert len(cache) == 2


def test_invalid_quantile():
    with pytest.raises(ValueError):
        ForecastConfig(model=_fast(), quantiles=(0.5, 1.5))


def test_predictive_seed_defaults_to_model_seed():
    assert ForecastConfig(model=_fast(random_seed=5)).predictive_seed == 5


def test_records_drop_non_finite_values():
    table = pd.DataFrame({
        "home_team": ["A", "B", "C"],
        "predicted_spread": [1.5, -np.inf, np.nan],
        "predicted_se": [np.inf, 2.0, 0.5],
    })
    rows = _records(table)
    assert rows[0]["predicted_se"] is None
    assert rows[1]["predicted_spread"] is None
    assert rows[2]["predicted_spread"] is None
    assert rows[1]["predicted_se"] == 2.0
    json.loads(json.dumps(rows, allow_nan=False))


def test_cache_separates_rosters(monkeypatch):
    fitted = []

    def fake_fit_season(self, season):
        fitted.append(season.team_names)
        return object()

    monkeypatch.setattr(TeamQualityModel, "fit_season", fake_fit_season)

    def season(names):
        teams = [{"team_name": n, "preseason_rank": i + 1} for i, n in enumerate(names)]
        games = [{"week": 1, "home_team": names[0], "home_score": 7,
                  "visiting_team": names[1], "visiting_score": 3}]
        return SeasonData.from_records(teams, games)

    forecaster = SeasonForecaster(ForecastConfig(model=_fast()), cache=FitCache())
    first = forecaster.fit(season(["Hawks", "Owls"]))
    second = forecaster.fit(season(["Bears", "Lions"]))
    again = forecaster.fit(season(["Hawks", "Owls"]))

    assert first is not second
    assert again is first
    assert fitted == [["Hawks", "Owls"], ["Bears", "Lions"]]
