"""Hard, soft and smooth thresholding of wavelet coefficients.

All functions modify the coefficient arrays in place and also return them.
A threshold of 0 leaves a level untouched, and ``MAX_THRESHOLD`` zeroes the
whole level.
"""

from typing import List, Sequence, Union

import numpy as np

from alphawave.constants import MAX_THRESHOLD
from alphawave.errors import InvalidArgumentError


def _check_levels(rows: Sequence[np.ndarray], thresholds: Sequence[float]) -> None:
    if len(thresholds) != len(rows):
        raise InvalidArgumentError(
            f"Got {len(thresholds)} thresholds for {len(rows)} decomposition levels"
        )


def threshold_hard(rows: List[np.ndarray], thresholds: Sequence[float]) -> List[np.ndarray]:
    """Zero every coefficient with ``|d| <= t``, one threshold per level."""
    _check_levels(rows, thresholds)
    for row, t in zip(rows, thresholds):
        if t == 0.0:
            continue
        if t == MAX_THRESHOLD:
            row[:] = 0.0
            continue
        row[np.abs(row) <= t] = 0.0
    return rows


def soft_threshold(s: np.ndarray, t: Union[float, np.ndarray]) -> np.ndarray:
    """Shrink coefficients towards zero by ``t``, clamping ``|s| <= t`` to zero.

    Args:
        s: Coefficients, modified in place
        t: Scalar threshold, or one threshold per coefficient

    Returns:
        The thresholded ``s``
    """
    if np.ndim(t) == 0:
        if t == 0.0:
            return s
        if t == MAX_THRESHOLD:
            s[:] = 0.0
            return s
    elif len(t) != len(s):
        raise InvalidArgumentError(
            f"Per-element thresholds have length {len(t)}, coefficients {len(s)}"
        )

    t = np.asarray(t, dtype=np.float64)
    s[:] = np.where(np.abs(s) <= t, 0.0, s - np.sign(s) * t)
    return s


def threshold_soft(rows: List[np.ndarray], thresholds: Sequence[float]) -> List[np.ndarray]:
    """Soft-threshold each level with its own scalar threshold."""
    _check_levels(rows, thresholds)
    for row, t in zip(rows, thresholds):
        soft_threshold(row, t)
    return rows


def threshold_smooth(rows: List[np.ndarray], thresholds: Sequence[float]) -> List[np.ndarray]:
    """Exponential shrinkage: ``d * max(0, 1 - exp(1 - |d| / t))``, zero for ``|d| <= t``.

    Keeps large coefficients almost unchanged while fading out those just
    above the threshold, which avoids the step of hard thresholding.
    """
    _check_levels(rows, thresholds)
    for row, t in zip(rows, thresholds):
        if t == 0.0:
            continue
        if t == MAX_THRESHOLD:
            row[:] = 0.0
            continue
        magnitude = np.abs(row)
        shrink = np.maximum(0.0, 1.0 - np.exp(1.0 - magnitude / t))
        row[:] = np.where(magnitude <= t, 0.0, row * shrink)
    return rows
