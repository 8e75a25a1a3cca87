"""Preseason rank -> prior score construction."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..errors import DataShapeError


def prior_scores_from_ranks(ranks: Sequence[int]) -> np.ndarray:
    """
    Build centered, scaled prior scores from ordinal preseason ranks.

    Rank 1 is the best team. Ranks are reversed (rank 1 -> n, rank n -> 1),
    centered on their mean and divided by twice their sample standard
    deviation, which puts the prior on roughly the scale of a standard
    normal latent variable. The result is recomputed on every call.

    Args:
        ranks: Preseason rank per roster slot; must be a permutation of 1..n

    Returns:
        Array of prior scores aligned with ``ranks``

    Raises:
        DataShapeError: If ranks are not a permutation of 1..n or n < 2
    """
    arr = np.asarray(ranks)
    n = arr.size
    if arr.ndim != 1 or n < 2:
        raise DataShapeError(f"Need at least two ranked teams, got {n}")
    if not np.issubdtype(arr.dtype, np.integer):
        if not np.all(np.equal(np.mod(arr, 1), 0)):
            raise DataShapeError("Preseason ranks must be integers")
        arr = arr.astype(int)
    if sorted(arr.tolist()) != list(range(1, n + 1)):
        raise DataShapeError(f"Preseason ranks must be a permutation of 1..{n}")

    reverse_rank = (n + 1 - arr).astype(float)
    centered = reverse_rank - reverse_rank.mean()
    return centered / (2.0 * reverse_rank.std(ddof=1))
