"""Sampler convergence diagnostics (R-hat, effective sample size, divergences)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import arviz as az
import numpy as np

logger = logging.getLogger(__name__)


def _finite_or_none(value: float):
    return float(value) if np.isfinite(value) else None


@dataclass
class ConvergenceReport:
    """Outcome of the post-sampling convergence check."""

    n_chains: int
    n_draws: int
    rhat: Dict[str, float] = field(default_factory=dict)
    ess_bulk: Dict[str, float] = field(default_factory=dict)
    n_divergences: int = 0
    rhat_threshold: float = 1.05
    min_ess: float = 100.0
    max_divergence_fraction: float = 0.01

    @property
    def max_rhat(self) -> float:
        finite = [v for v in self.rhat.values() if np.isfinite(v)]
        return max(finite) if finite else float("nan")

    @property
    def min_ess_bulk(self) -> float:
        finite = [v for v in self.ess_bulk.values() if np.isfinite(v)]
        return min(finite) if finite else float("nan")

    @property
    def divergence_fraction(self) -> float:
        total = self.n_chains * self.n_draws
        return self.n_divergences / total if total else 0.0

    @property
    def problems(self) -> List[str]:
        issues = []
        # R-hat is undefined for a single chain; the check is skipped there.
        if self.n_chains > 1:
            bad = sorted(k for k, v in self.rhat.items() if not v <= self.rhat_threshold)
            if bad:
                issues.append(
                    f"R-hat above {self.rhat_threshold} for {', '.join(bad)} "
                    f"(max {self.max_rhat:.3f})"
                )
        low = sorted(k for k, v in self.ess_bulk.items() if np.isfinite(v) and v < self.min_ess)
        if low:
            issues.append(f"bulk ESS below {self.min_ess:g} for {', '.join(low)}")
        if self.divergence_fraction > self.max_divergence_fraction:
            issues.append(
                f"{self.n_divergences} divergent transitions "
                f"({self.divergence_fraction:.1%} of draws)"
            )
        return issues

    @property
    def passed(self) -> bool:
        return not self.problems

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "n_chains": self.n_chains,
            "n_draws": self.n_draws,
            "max_rhat": _finite_or_none(self.max_rhat),
            "min_ess_bulk": _finite_or_none(self.min_ess_bulk),
            "n_divergences": self.n_divergences,
            "problems": self.problems,
        }


def _worst(values: np.ndarray, pick) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0 or not np.isfinite(arr).any():
        return float("nan")
    return float(pick(arr[np.isfinite(arr)]))


def check_convergence(
    idata,
    var_names: Sequence[str],
    rhat_threshold: float = 1.05,
    min_ess: float = 100.0,
    max_divergence_fraction: float = 0.01,
) -> ConvergenceReport:
    """
    Compute per-parameter convergence diagnostics on unpooled chains.

    Args:
        idata: ``InferenceData`` with chain and draw dimensions intact
        var_names: Parameters to check; vector parameters report their worst
            element
        rhat_threshold: Largest acceptable rank-normalized R-hat
        min_ess: Smallest acceptable bulk effective sample size
        max_divergence_fraction: Largest acceptable share of divergent draws

    Returns:
        ConvergenceReport
    """
    posterior = idata.posterior
    n_chains = int(posterior.sizes["chain"])
    n_draws = int(posterior.sizes["draw"])

    rhat: Dict[str, float] = {}
    if n_chains > 1:
        rhat_ds = az.rhat(idata, var_names=list(var_names))
        rhat = {name: _worst(rhat_ds[name].values, np.max) for name in var_names}

    ess_ds = az.ess(idata, var_names=list(var_names), method="bulk")
    ess_bulk = {name: _worst(ess_ds[name].values, np.min) for name in var_names}

    n_divergences = 0
    sample_stats = getattr(idata, "sample_stats", None)
    if sample_stats is not None and "diverging" in sample_stats:
        n_divergences = int(np.asarray(sample_stats["diverging"].values).sum())

    report = ConvergenceReport(
        n_chains=n_chains,
        n_draws=n_draws,
        rhat=rhat,
        ess_bulk=ess_bulk,
        n_divergences=n_divergences,
        rhat_threshold=rhat_threshold,
        min_ess=min_ess,
        max_divergence_fraction=max_divergence_fraction,
    )
    logger.debug(
        "Convergence: max R-hat %.4f, min bulk ESS %.0f, %d divergences",
        report.max_rhat, report.min_ess_bulk, n_divergences,
    )
    return report
