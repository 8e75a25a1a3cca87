"""End-to-end season forecast: fit team quality, then simulate upcoming games."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ..data.dataset import SeasonData
from ..inference.cache import FitCache
from ..inference.model import FitResult, ModelConfig, TeamQualityModel
from ..simulation.predictive import PredictiveDraws, simulate_from_fit
from ..simulation.summary import (
    DEFAULT_QUANTILES,
    summarize_parameters,
    summarize_predictions,
    summarize_teams,
)

logger = logging.getLogger(__name__)


@dataclass
class ForecastConfig:
    """Pipeline configuration knobs."""

    model: ModelConfig = field(default_factory=ModelConfig)
    through_week: Optional[int] = None
    predict_week: Optional[int] = None
    quantiles: Sequence[float] = DEFAULT_QUANTILES
    predictive_seed: Optional[int] = None
    use_cache: bool = True

    def __post_init__(self):
        for q in self.quantiles:
            if not 0.0 <= q <= 1.0:
                raise ValueError(f"Quantiles must be in [0, 1], got {q}")
        if self.predictive_seed is None:
            self.predictive_seed = self.model.random_seed


@dataclass
class ForecastResult:
    """Everything a caller needs from one forecasting run."""

    team_table: pd.DataFrame
    prediction_table: pd.DataFrame
    parameter_table: pd.DataFrame
    fit: FitResult
    predictive: PredictiveDraws

    @property
    def converged(self) -> bool:
        return self.fit.converged

    @property
    def samples(self):
        return self.fit.samples

    def to_dict(self) -> Dict:
        return {
            "model": self.fit.config.variant,
            "converged": self.converged,
            "diagnostics": self.fit.diagnostics.to_dict(),
            "teams": _records(self.team_table),
            "predictions": _records(self.prediction_table),
            "parameters": _records(self.parameter_table),
        }


def _records(table: pd.DataFrame):
    # NaN and infinities are not valid JSON
    table = table.replace([np.inf, -np.inf], np.nan)
    return table.astype(object).where(pd.notna(table), None).to_dict(orient="records")


class SeasonForecaster:
    """
    Runs the full pipeline on one ``SeasonData``.

    Stages: filter weeks -> fit posterior (cached when enabled) -> posterior
    predictive for upcoming games -> team, parameter and game summaries.
    """

    def __init__(self, config: Optional[ForecastConfig] = None, cache: Optional[FitCache] = None):
        self.config = config or ForecastConfig()
        self.cache = cache if cache is not None else (FitCache() if self.config.use_cache else None)

    def fit(self, season: SeasonData) -> FitResult:
        """Fit the configured model variant on the season's completed games."""
        engine = TeamQualityModel(self.config.model)
        if self.cache is None:
            return engine.fit_season(season)

        arrays = dict(season.observation_arrays())
        arrays["prior_scores"] = season.prior_scores
        arrays["team_names"] = np.array(season.team_names, dtype=str)
        return self.cache.get_or_fit(self.config.model, arrays, lambda: engine.fit_season(season))

    def run(self, season: SeasonData) -> ForecastResult:
        """
        Run the complete pipeline.

        Returns:
            ForecastResult with team, prediction and parameter tables
        """
        cfg = self.config
        if cfg.through_week is not None:
            season = season.through_week(cfg.through_week)
        if cfg.predict_week is not None:
            season = season.for_week(cfg.predict_week)

        logger.info(
            "Forecasting %d upcoming games from %d completed games (%s model)",
            len(season.upcoming), season.n_games, cfg.model.variant,
        )
        fit = self.fit(season)

        upcoming = season.upcoming_arrays()
        predictive = simulate_from_fit(
            fit,
            upcoming["home_idx"],
            upcoming["away_idx"],
            injury_diff=upcoming["injury_diff"],
            random_seed=cfg.predictive_seed,
        )

        names = season.team_names
        team_table = summarize_teams(
            fit.samples,
            names,
            preseason_ranks=[t.preseason_rank for t in season.teams],
            prior_scores=season.prior_scores,
        )
        prediction_table = summarize_predictions(
            predictive.spreads,
            [names[i] for i in upcoming["home_idx"]],
            [names[i] for i in upcoming["away_idx"]],
            weeks=[g.week for g in season.upcoming],
            quantiles=cfg.quantiles,
        )
        scalar_names = [n for n in fit.config.parameter_names if n != "a"]
        parameter_table = summarize_parameters(fit.samples, scalar_names, quantiles=cfg.quantiles)

        if not fit.converged:
            logger.warning("Forecast built on a fit that failed convergence checks")
        return ForecastResult(
            team_table=team_table,
            prediction_table=prediction_table,
            parameter_table=parameter_table,
            fit=fit,
            predictive=predictive,
        )


def run_forecast(
    season: SeasonData,
    variant: str = "base",
    draws: int = 2000,
    random_seed: Optional[int] = None,
    **model_kwargs,
) -> ForecastResult:
    """
    Convenience function to run a forecast with default pipeline settings.

    Args:
        season: Resolved season data
        variant: ``base``, ``home`` or ``injury``
        draws: Posterior draws per chain
        random_seed: Seed for sampling and predictive simulation

    Returns:
        ForecastResult
    """
    model = ModelConfig.for_variant(variant, draws=draws, random_seed=random_seed, **model_kwargs)
    return SeasonForecaster(ForecastConfig(model=model, use_cache=False)).run(season)
