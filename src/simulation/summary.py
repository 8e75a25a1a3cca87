"""Posterior and predictive summaries as tables."""

from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import DataShapeError
from ..inference.posterior import PosteriorSamples

DEFAULT_QUANTILES = (0.10, 0.25, 0.50, 0.75, 0.90)


def quantile_label(q: float) -> str:
    """0.1 -> 'q10', 0.025 -> 'q2.5'."""
    return f"q{q * 100:g}"


def _sample_se(values: np.ndarray, axis: int = 0) -> np.ndarray:
    """Unbiased sample standard deviation (n - 1 denominator)."""
    if values.shape[axis] < 2:
        return np.full(np.delete(values.shape, axis), np.nan)
    return np.std(values, axis=axis, ddof=1)


def win_probability(spreads: np.ndarray) -> np.ndarray:
    """
    Share of draws in which the home team wins each game.

    A simulated tie (spread exactly 0) is not a win.
    """
    spreads = np.asarray(spreads, dtype=float)
    if spreads.ndim != 2:
        raise DataShapeError(f"Expected a (draws, games) matrix, got shape {spreads.shape}")
    return (spreads > 0).mean(axis=0)


def summarize_teams(
    samples: PosteriorSamples,
    team_names: Sequence[str],
    preseason_ranks: Optional[Sequence[int]] = None,
    prior_scores: Optional[Sequence[float]] = None,
) -> pd.DataFrame:
    """
    Posterior mean and standard error of each team's quality.

    Args:
        samples: Posterior draws containing the team-quality vector ``a``
        team_names: Roster names aligned with ``a``
        preseason_ranks: Optional preseason ranks to carry alongside
        prior_scores: Optional prior scores to carry alongside

    Returns:
        DataFrame with ``team_name``, ``posterior_mean``, ``posterior_se``
        and ``rank`` (1 = highest posterior mean), in roster order
    """
    a = samples["a"]
    if a.shape[1] != len(team_names):
        raise DataShapeError(f"{len(team_names)} team names for {a.shape[1]} quality columns")

    table = pd.DataFrame({
        "team_name": list(team_names),
        "posterior_mean": a.mean(axis=0),
        "posterior_se": _sample_se(a, axis=0),
    })
    if preseason_ranks is not None:
        table.insert(1, "preseason_rank", list(preseason_ranks))
    if prior_scores is not None:
        table.insert(len(table.columns) - 2, "prior_score", list(prior_scores))
    table["rank"] = table["posterior_mean"].rank(ascending=False, method="min").astype(int)
    return table


def summarize_parameters(
    samples: PosteriorSamples,
    names: Optional[Sequence[str]] = None,
    quantiles: Sequence[float] = DEFAULT_QUANTILES,
) -> pd.DataFrame:
    """Mean, SE and quantiles for the scalar parameters (b, sigmas, home/injury terms)."""
    if names is None:
        names = [n for n in samples.names if samples[n].ndim == 1]
    rows = []
    for name in names:
        draws = samples[name]
        if draws.ndim != 1:
            raise DataShapeError(f"Parameter '{name}' is not scalar")
        row: Dict[str, float] = {
            "parameter": name,
            "mean": float(draws.mean()),
            "se": float(_sample_se(draws)),
        }
        for q, value in zip(quantiles, np.quantile(draws, quantiles)):
            row[quantile_label(q)] = float(value)
        rows.append(row)
    return pd.DataFrame(rows)


def summarize_predictions(
    spreads: np.ndarray,
    home_teams: Sequence[str],
    visiting_teams: Sequence[str],
    weeks: Optional[Sequence[int]] = None,
    quantiles: Optional[Sequence[float]] = DEFAULT_QUANTILES,
) -> pd.DataFrame:
    """
    Per-game summary of simulated point spreads (home minus visitor).

    Args:
        spreads: Simulated spreads, shape ``(n_draws, n_games)``
        home_teams: Home team name per game
        visiting_teams: Visiting team name per game
        weeks: Optional week per game
        quantiles: Spread quantiles to report; ``None`` or empty to skip

    Returns:
        DataFrame with ``home_team``, ``visiting_team``, ``win_probability``,
        ``predicted_spread``, ``predicted_se`` and one column per quantile
    """
    spreads = np.asarray(spreads, dtype=float)
    probs = win_probability(spreads)
    n_games = spreads.shape[1]
    if len(home_teams) != n_games or len(visiting_teams) != n_games:
        raise DataShapeError(
            f"{len(home_teams)} home / {len(visiting_teams)} visiting names for {n_games} games"
        )

    table = pd.DataFrame({
        "home_team": list(home_teams),
        "visiting_team": list(visiting_teams),
        "win_probability": probs,
        "predicted_spread": spreads.mean(axis=0),
        "predicted_se": _sample_se(spreads, axis=0),
    })
    if weeks is not None:
        table.insert(0, "week", list(weeks))
    if quantiles and n_games:
        values = np.quantile(spreads, quantiles, axis=0)
        for q, column in zip(quantiles, values):
            table[quantile_label(q)] = column
    elif quantiles:
        for q in quantiles:
            table[quantile_label(q)] = pd.Series(dtype=float)
    return table
