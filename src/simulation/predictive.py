"""
Posterior predictive simulation of unplayed games.

For every posterior draw and every upcoming game, a transformed margin is
drawn from ``StudentT(df, mu, sigma_y)`` using that draw's parameters and
mapped back to point-spread units with the inverse square-root transform.
The location term follows the fitted variant: the base model uses only the
team qualities, the home-field model adds ``home_adv``, the injury model also
adds ``inj_adv`` times the injury differential.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import stats

from ..errors import DataShapeError
from ..inference.posterior import PosteriorSamples
from ..inference.transform import inverse_transform_differential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictiveDraws:
    """Simulated outcomes, shape ``(n_draws, n_games)``, read-only."""

    transformed: np.ndarray
    spreads: np.ndarray

    @property
    def n_draws(self) -> int:
        return int(self.spreads.shape[0])

    @property
    def n_games(self) -> int:
        return int(self.spreads.shape[1])


def _team_indices(values, name: str) -> np.ndarray:
    arr = np.asarray(values)
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        as_float = arr.astype(float)
        if not np.all(np.isfinite(as_float)) or not np.all(np.mod(as_float, 1) == 0):
            raise DataShapeError(f"{name} must contain integer team indices")
    return arr.astype(int)


def predictive_location(
    samples: PosteriorSamples,
    home_idx,
    away_idx,
    injury_diff=None,
    use_home_adv: bool = False,
    use_injury_adv: bool = False,
) -> np.ndarray:
    """
    Per-draw expected transformed margin for each game.

    Returns:
        Array of shape ``(n_draws, n_games)``

    Raises:
        DataShapeError: Index out of range, mismatched lengths, or a
            structural term the posterior does not contain
    """
    a = samples["a"]
    n_teams = a.shape[1]
    home = _team_indices(home_idx, "home_idx")
    away = _team_indices(away_idx, "away_idx")
    if home.shape != away.shape or home.ndim != 1:
        raise DataShapeError(
            f"home_idx and away_idx must be equal-length vectors, got {home.shape} and {away.shape}"
        )
    for name, arr in (("home_idx", home), ("away_idx", away)):
        if arr.size and (arr.min() < 0 or arr.max() >= n_teams):
            raise DataShapeError(f"{name} contains an index outside [0, {n_teams - 1}]")

    mu = a[:, home] - a[:, away]

    if use_home_adv:
        if "home_adv" not in samples:
            raise DataShapeError("Posterior has no home_adv draws; fit the home-field variant")
        mu = mu + samples["home_adv"][:, None]

    if use_injury_adv:
        if "inj_adv" not in samples:
            raise DataShapeError("Posterior has no inj_adv draws; fit the injury variant")
        inj = np.zeros(home.shape) if injury_diff is None else np.asarray(injury_diff, dtype=float)
        if inj.shape != home.shape:
            raise DataShapeError(
                f"injury_diff has shape {inj.shape}, expected {home.shape}"
            )
        mu = mu + samples["inj_adv"][:, None] * inj[None, :]

    return mu


def simulate_spreads(
    samples: PosteriorSamples,
    home_idx,
    away_idx,
    injury_diff=None,
    df: float = 7.0,
    use_home_adv: bool = False,
    use_injury_adv: bool = False,
    random_seed: Optional[int] = None,
) -> PredictiveDraws:
    """
    Draw one simulated outcome per posterior draw per upcoming game.

    Args:
        samples: Pooled posterior draws
        home_idx: 0-based home team index per upcoming game
        away_idx: 0-based visiting team index per upcoming game
        injury_diff: Home minus visiting injury count per game (missing -> 0)
        df: Student-t degrees of freedom used in the fit
        use_home_adv: Include ``home_adv`` in the location
        use_injury_adv: Include ``inj_adv * injury_diff`` in the location
        random_seed: Seed for reproducible draws

    Returns:
        PredictiveDraws with transformed margins and point spreads
    """
    mu = predictive_location(samples, home_idx, away_idx, injury_diff, use_home_adv, use_injury_adv)
    sigma_y = samples["sigma_y"][:, None]
    rng = np.random.default_rng(random_seed)

    if mu.shape[1] == 0:
        transformed = np.empty_like(mu)
    else:
        transformed = stats.t.rvs(df, loc=mu, scale=np.broadcast_to(sigma_y, mu.shape), random_state=rng)
        transformed = np.asarray(transformed, dtype=float).reshape(mu.shape)
    spreads = np.asarray(inverse_transform_differential(transformed), dtype=float).reshape(mu.shape)

    transformed.setflags(write=False)
    spreads.setflags(write=False)
    logger.debug("Simulated %d draws for %d games", mu.shape[0], mu.shape[1])
    return PredictiveDraws(transformed=transformed, spreads=spreads)


def simulate_from_fit(fit, home_idx, away_idx, injury_diff=None, random_seed=None) -> PredictiveDraws:
    """Simulate with the variant and ``df`` recorded on a ``FitResult``."""
    cfg = fit.config
    return simulate_spreads(
        fit.samples,
        home_idx,
        away_idx,
        injury_diff=injury_diff,
        df=cfg.df,
        use_home_adv=cfg.use_home_adv,
        use_injury_adv=cfg.use_injury_adv,
        random_seed=random_seed,
    )
