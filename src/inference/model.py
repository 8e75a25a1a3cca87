"""
Hierarchical Bayesian model of team quality.

One model builder covers three nested variants, selected by capability flags
on ``ModelConfig``:

    a[i]  ~ Normal(b * prior_score[i], sigma_a)

    mu[g] = a[home[g]] - a[away[g]]                         (base)
          + home_adv                                        (home field)
          + inj_adv * (injuries_home[g] - injuries_away[g]) (injury)

    y[g]  ~ StudentT(df, mu[g], sigma_y)

``y`` is the signed square root of the home-minus-visitor margin. ``b``,
``sigma_a`` and ``sigma_y`` have flat priors (the sigmas flat on the positive
half-line). ``home_adv`` gets a StudentT(3, 0, 1) prior in the home-field
variant and Normal(0, home_sigma) in the injury variant; ``inj_adv`` gets
Normal(0, inj_sigma).

The home team is always ``team1``. ``home_adv`` and ``inj_adv`` only have
meaning relative to that orientation.
"""

from __future__ import annotations

import logging
import multiprocessing
import warnings
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pymc as pm

from ..errors import ConvergenceWarning, DataShapeError
from .diagnostics import ConvergenceReport, check_convergence
from .posterior import PosteriorSamples

logger = logging.getLogger(__name__)

BASE_PARAMETERS = ("a", "b", "sigma_a", "sigma_y")


@dataclass
class ModelConfig:
    """Model structure and sampler settings."""

    # Likelihood and structural priors
    df: float = 7.0
    home_sigma: float = 3.0
    inj_sigma: float = 1.0
    use_home_adv: bool = False
    use_injury_adv: bool = False

    # Sampler
    draws: int = 2000
    tune: int = 1000
    chains: int = 4
    cores: Optional[int] = None  # None = one worker per chain, capped at CPU count
    target_accept: float = 0.9
    random_seed: Optional[int] = None
    noncentered: bool = True
    progressbar: bool = False

    # Convergence check
    rhat_threshold: float = 1.05
    min_ess: float = 100.0
    max_divergence_fraction: float = 0.01

    def __post_init__(self):
        if self.df <= 0:
            raise ValueError(f"df must be positive, got {self.df}")
        if self.home_sigma <= 0 or self.inj_sigma <= 0:
            raise ValueError("home_sigma and inj_sigma must be positive")
        if self.draws < 2:
            raise ValueError(f"draws must be at least 2, got {self.draws}")
        if self.tune < 0:
            raise ValueError(f"tune must be non-negative, got {self.tune}")
        if self.chains < 1:
            raise ValueError(f"chains must be at least 1, got {self.chains}")
        if not 0 < self.target_accept < 1:
            raise ValueError(f"target_accept must be in (0, 1), got {self.target_accept}")
        # The injury variant always carries the home-field term.
        if self.use_injury_adv:
            self.use_home_adv = True
        if self.cores is None:
            self.cores = max(1, min(self.chains, multiprocessing.cpu_count()))

    @classmethod
    def base(cls, **kwargs) -> "ModelConfig":
        return cls(use_home_adv=False, use_injury_adv=False, **kwargs)

    @classmethod
    def home_field(cls, **kwargs) -> "ModelConfig":
        return cls(use_home_adv=True, use_injury_adv=False, **kwargs)

    @classmethod
    def injury(cls, **kwargs) -> "ModelConfig":
        return cls(use_home_adv=True, use_injury_adv=True, **kwargs)

    @classmethod
    def for_variant(cls, variant: str, **kwargs) -> "ModelConfig":
        """Build a config from a variant name: ``base``, ``home`` or ``injury``."""
        factories = {"base": cls.base, "home": cls.home_field, "injury": cls.injury}
        if variant not in factories:
            raise ValueError(f"Unknown model variant: {variant}")
        return factories[variant](**kwargs)

    @property
    def variant(self) -> str:
        if self.use_injury_adv:
            return "injury"
        if self.use_home_adv:
            return "home"
        return "base"

    @property
    def parameter_names(self) -> List[str]:
        names = list(BASE_PARAMETERS)
        if self.use_home_adv:
            names.append("home_adv")
        if self.use_injury_adv:
            names.append("inj_adv")
        return names

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FitResult:
    """Posterior from one fitting run."""

    samples: PosteriorSamples
    config: ModelConfig
    diagnostics: ConvergenceReport
    team_names: List[str] = field(default_factory=list)
    inference_data: object = field(default=None, repr=False)

    @property
    def converged(self) -> bool:
        return self.diagnostics.passed

    @property
    def n_teams(self) -> int:
        return int(self.samples["a"].shape[1])


def validate_model_inputs(
    n_teams: int,
    home_idx,
    away_idx,
    y,
    prior_scores,
    injury_diff=None,
) -> Dict[str, np.ndarray]:
    """
    Check array shapes and index ranges before building the model.

    Team indices are 0-based roster slots.

    Returns:
        Dict of validated numpy arrays (``home_idx``, ``away_idx``, ``y``,
        ``prior_scores``, ``injury_diff``)

    Raises:
        DataShapeError: On any length mismatch, out-of-range index, empty game
            list or non-finite value
    """
    if int(n_teams) != n_teams or n_teams < 2:
        raise DataShapeError(f"n_teams must be an integer >= 2, got {n_teams}")
    n_teams = int(n_teams)

    home = np.asarray(home_idx)
    away = np.asarray(away_idx)
    obs = np.asarray(y, dtype=float)
    prior = np.asarray(prior_scores, dtype=float)
    inj = np.zeros(obs.shape, dtype=float) if injury_diff is None else np.asarray(injury_diff, dtype=float)

    for name, arr in (("home_idx", home), ("away_idx", away), ("y", obs), ("injury_diff", inj)):
        if arr.ndim != 1:
            raise DataShapeError(f"{name} must be one-dimensional, got shape {arr.shape}")

    n_games = obs.size
    if n_games == 0:
        raise DataShapeError("At least one completed game is required to fit the model")
    if not (home.size == away.size == n_games == inj.size):
        raise DataShapeError(
            f"Game arrays disagree in length: home={home.size}, away={away.size}, "
            f"y={n_games}, injury_diff={inj.size}"
        )
    if prior.shape != (n_teams,):
        raise DataShapeError(f"prior_scores has shape {prior.shape}, expected ({n_teams},)")

    for name, arr in (("home_idx", home), ("away_idx", away)):
        if arr.size and not np.issubdtype(arr.dtype, np.integer):
            if not np.all(np.mod(arr, 1) == 0):
                raise DataShapeError(f"{name} must contain integer team indices")
        arr = arr.astype(int)
        bad = (arr < 0) | (arr >= n_teams)
        if bad.any():
            raise DataShapeError(
                f"{name} has index {int(arr[bad][0])} outside [0, {n_teams - 1}]"
            )
    if not (np.all(np.isfinite(obs)) and np.all(np.isfinite(prior)) and np.all(np.isfinite(inj))):
        raise DataShapeError("Observations, priors and injury differentials must be finite")

    return {
        "home_idx": home.astype(int),
        "away_idx": away.astype(int),
        "y": obs,
        "prior_scores": prior,
        "injury_diff": inj,
    }


class TeamQualityModel:
    """
    Builds and samples the team-quality model.

    Usage:
        model = TeamQualityModel(ModelConfig.home_field(draws=1000))
        fit = model.fit(n_teams, home_idx, away_idx, y, prior_scores)
        fit.samples["a"]  # (draws * chains, n_teams)
    """

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or ModelConfig()
        self.model: Optional[pm.Model] = None

    def build(
        self,
        n_teams: int,
        home_idx,
        away_idx,
        y,
        prior_scores,
        injury_diff=None,
        team_names: Optional[Sequence[str]] = None,
    ) -> pm.Model:
        """
        Build the PyMC model for the configured variant.

        Returns:
            PyMC model ready for sampling
        """
        data = validate_model_inputs(n_teams, home_idx, away_idx, y, prior_scores, injury_diff)
        cfg = self.config
        n_games = data["y"].size
        coords = {
            "team": list(team_names) if team_names is not None else list(range(n_teams)),
            "game": list(range(n_games)),
        }
        if len(coords["team"]) != n_teams:
            raise DataShapeError(f"Got {len(coords['team'])} team names for {n_teams} teams")

        with pm.Model(coords=coords) as model:
            home = pm.Data("home_idx", data["home_idx"], dims="game")
            away = pm.Data("away_idx", data["away_idx"], dims="game")
            prior = pm.Data("prior_score", data["prior_scores"], dims="team")

            b = pm.Flat("b")
            sigma_a = pm.HalfFlat("sigma_a")
            sigma_y = pm.HalfFlat("sigma_y")

            if cfg.noncentered:
                a_raw = pm.Normal("a_raw", mu=0.0, sigma=1.0, dims="team")
                a = pm.Deterministic("a", b * prior + sigma_a * a_raw, dims="team")
            else:
                a = pm.Normal("a", mu=b * prior, sigma=sigma_a, dims="team")

            mu = a[home] - a[away]

            if cfg.use_home_adv:
                if cfg.use_injury_adv:
                    home_adv = pm.Normal("home_adv", mu=0.0, sigma=cfg.home_sigma)
                else:
                    home_adv = pm.StudentT("home_adv", nu=3, mu=0.0, sigma=1.0)
                mu = mu + home_adv

            if cfg.use_injury_adv:
                injury = pm.Data("injury_diff", data["injury_diff"], dims="game")
                inj_adv = pm.Normal("inj_adv", mu=0.0, sigma=cfg.inj_sigma)
                mu = mu + inj_adv * injury

            pm.StudentT("y", nu=cfg.df, mu=mu, sigma=sigma_y, observed=data["y"], dims="game")

        self.model = model
        return model

    def sample(self, model: Optional[pm.Model] = None):
        """Run NUTS, one chain per worker process."""
        model = model or self.model
        if model is None:
            raise RuntimeError("Call build() before sample()")
        cfg = self.config
        logger.info(
            "Sampling %s model: %d chains x %d draws (%d tune) on %d cores",
            cfg.variant, cfg.chains, cfg.draws, cfg.tune, cfg.cores,
        )
        return pm.sample(
            draws=cfg.draws,
            tune=cfg.tune,
            chains=cfg.chains,
            cores=cfg.cores,
            target_accept=cfg.target_accept,
            random_seed=cfg.random_seed,
            progressbar=cfg.progressbar,
            compute_convergence_checks=False,
            return_inferencedata=True,
            model=model,
        )

    def fit(
        self,
        n_teams: int,
        home_idx,
        away_idx,
        y,
        prior_scores,
        injury_diff=None,
        team_names: Optional[Sequence[str]] = None,
    ) -> FitResult:
        """
        Build, sample, check convergence and pool the chains.

        Poor mixing does not raise: a ``ConvergenceWarning`` is emitted and
        the returned ``FitResult.converged`` is False.

        Args:
            n_teams: Roster size
            home_idx: 0-based home team index per completed game
            away_idx: 0-based visiting team index per completed game
            y: Transformed score differential per game (home minus visitor)
            prior_scores: Prior score per team
            injury_diff: Home minus visiting injured-player count per game
                (used by the injury variant only; default zeros)
            team_names: Optional roster names for labelled output

        Returns:
            FitResult
        """
        model = self.build(n_teams, home_idx, away_idx, y, prior_scores, injury_diff, team_names)
        idata = self.sample(model)
        var_names = self.config.parameter_names

        report = check_convergence(
            idata,
            var_names,
            rhat_threshold=self.config.rhat_threshold,
            min_ess=self.config.min_ess,
            max_divergence_fraction=self.config.max_divergence_fraction,
        )
        if not report.passed:
            message = "Sampler did not converge: " + "; ".join(report.problems)
            logger.warning(message)
            warnings.warn(ConvergenceWarning(message, report.to_dict()), stacklevel=2)

        samples = PosteriorSamples.from_inference_data(idata, var_names)
        logger.info("Pooled %d posterior draws", samples.n_draws)
        return FitResult(
            samples=samples,
            config=self.config,
            diagnostics=report,
            team_names=list(team_names) if team_names is not None else [],
            inference_data=idata,
        )

    def fit_season(self, season) -> FitResult:
        """Fit on the completed games of a ``SeasonData``."""
        arrays = season.observation_arrays()
        return self.fit(
            season.n_teams,
            arrays["home_idx"],
            arrays["away_idx"],
            arrays["y"],
            season.prior_scores,
            injury_diff=arrays["injury_diff"],
            team_names=season.team_names,
        )
