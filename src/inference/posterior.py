"""Columnar, read-only store of posterior draws."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd


class PosteriorSamples:
    """
    Immutable posterior sample set.

    One column per parameter, one row per draw. Vector parameters (the team
    quality vector ``a``) are stored as ``(n_draws, n_teams)`` arrays, scalars
    as ``(n_draws,)``. Draws from several chains are pooled; consumers should
    rely only on the empirical distribution, not on draw order.

    Columns are exposed by key (``samples["a"]``) and are read-only numpy
    arrays. Combining sample sets produces a new object.
    """

    def __init__(self, columns: Mapping[str, np.ndarray]):
        if not columns:
            raise ValueError("PosteriorSamples needs at least one parameter column")

        store: Dict[str, np.ndarray] = {}
        n_draws: Optional[int] = None
        for name, values in columns.items():
            arr = np.array(values, dtype=float, copy=True)
            if arr.ndim == 0:
                raise ValueError(f"Column '{name}' must have a draw axis")
            if n_draws is None:
                n_draws = arr.shape[0]
            elif arr.shape[0] != n_draws:
                raise ValueError(
                    f"Column '{name}' has {arr.shape[0]} draws, expected {n_draws}"
                )
            arr.setflags(write=False)
            store[name] = arr

        self._columns = store
        self._n_draws = int(n_draws or 0)

    @classmethod
    def from_inference_data(
        cls, idata, var_names: Optional[Sequence[str]] = None
    ) -> "PosteriorSamples":
        """
        Pool all chains of a PyMC/ArviZ posterior into one sample set.

        Args:
            idata: ``InferenceData`` returned by ``pm.sample``
            var_names: Variables to keep (default: every posterior variable)

        Returns:
            PosteriorSamples with ``chain * draw`` rows
        """
        posterior = idata.posterior
        names = list(var_names) if var_names is not None else list(posterior.data_vars)
        columns = {}
        for name in names:
            values = np.asarray(posterior[name].values)
            n_chains, n_draws = values.shape[:2]
            columns[name] = values.reshape((n_chains * n_draws,) + values.shape[2:])
        return cls(columns)

    @classmethod
    def concat(cls, parts: Iterable["PosteriorSamples"]) -> "PosteriorSamples":
        """Stack several sample sets with identical columns."""
        parts = list(parts)
        if not parts:
            raise ValueError("Nothing to concatenate")
        names = parts[0].names
        for part in parts[1:]:
            if part.names != names:
                raise ValueError("Sample sets have different parameters")
        return cls({name: np.concatenate([p[name] for p in parts], axis=0) for name in names})

    def __getitem__(self, name: str) -> np.ndarray:
        try:
            return self._columns[name]
        except KeyError:
            raise KeyError(f"No posterior samples for parameter '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return self._n_draws

    def get(self, name: str, default=None):
        return self._columns.get(name, default)

    @property
    def names(self) -> List[str]:
        return list(self._columns)

    @property
    def n_draws(self) -> int:
        return self._n_draws

    def to_dataframe(self, team_names: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Flatten to one DataFrame row per draw.

        Vector columns become ``name[i]`` (or ``name[team]`` when team names
        are given for the team-quality vector).
        """
        flat: Dict[str, np.ndarray] = {}
        for name, values in self._columns.items():
            if values.ndim == 1:
                flat[name] = values
                continue
            width = values.reshape(self._n_draws, -1)
            labels = (
                list(team_names)
                if team_names is not None and width.shape[1] == len(team_names)
                else [str(i) for i in range(width.shape[1])]
            )
            for j, label in enumerate(labels):
                flat[f"{name}[{label}]"] = width[:, j]
        return pd.DataFrame(flat)

    def __repr__(self) -> str:
        shapes = ", ".join(f"{k}{tuple(v.shape[1:])}" for k, v in self._columns.items())
        return f"PosteriorSamples(n_draws={self._n_draws}, columns=[{shapes}])"
