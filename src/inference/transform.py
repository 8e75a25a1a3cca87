"""Signed square-root transform of score differentials.

Blowout margins carry more variance than close games. Taking the signed
square root compresses large margins toward a common scale while keeping
sign and ordering, so a 35-point win counts for more than a 7-point win but
not five times as much.

Zero is treated as positive (``d >= 0`` branch) in both directions.
"""

from __future__ import annotations

from typing import Union

import numpy as np

ArrayLike = Union[float, int, np.ndarray, list]


def _sign(x: np.ndarray) -> np.ndarray:
    return np.where(x >= 0, 1.0, -1.0)


def transform_differential(diff: ArrayLike):
    """
    Map raw score differentials to the model's observation scale.

    Args:
        diff: Home score minus visiting score (scalar or array)

    Returns:
        ``sign(diff) * sqrt(|diff|)`` with the same shape as the input;
        a float for scalar input.
    """
    arr = np.asarray(diff, dtype=float)
    out = _sign(arr) * np.sqrt(np.abs(arr))
    return float(out) if out.ndim == 0 else out


def inverse_transform_differential(value: ArrayLike):
    """
    Map transformed values back to point-spread units.

    Args:
        value: Transformed differential(s), e.g. posterior predictive draws

    Returns:
        ``sign(value) * value**2``; a float for scalar input.
    """
    arr = np.asarray(value, dtype=float)
    out = _sign(arr) * np.square(arr)
    return float(out) if out.ndim == 0 else out
