"""Resampling of profile spectra onto a uniform m/z grid.

Each raw sample is split linearly between the two neighbouring grid points.
The accumulated intensity is divided by the accumulated weight (at least 1),
so dense regions are averaged while sparse regions keep their intensity.
"""

from typing import Tuple

import numpy as np
from numba import njit

from alphawave.constants import DEFAULT_RESOLUTION, HYDROGEN_ION_MASS
from alphawave.errors import InvalidArgumentError
from alphawave.spectrum.smoothing import smooth_a_little


def grid_size(mz_range: Tuple[float, float], resolution: int) -> int:
    """Number of grid points covering ``mz_range`` at ``resolution`` points per Th."""
    return resolution * (int(mz_range[1]) - int(mz_range[0])) + 1


@njit(nogil=True)
def _resample_kernel(mz, intensity, mz_min, mz_max, resolution, n_out):
    signal = np.zeros(n_out, dtype=np.float64)
    weight = np.zeros(n_out, dtype=np.float64)

    # Samples up to one grid step outside the range still contribute
    start = np.searchsorted(mz, mz_min - 1.0 / resolution)
    end = np.searchsorted(mz, mz_max + 1.0 / resolution)

    for i in range(start, end):
        bucket = (mz[i] - mz_min) * resolution
        index = int(np.floor(bucket))
        frac = bucket - index
        x = intensity[i]
        if 0 <= index < n_out:
            signal[index] += x * (1.0 - frac)
            weight[index] += 1.0 - frac
        if 0 <= index + 1 < n_out:
            signal[index + 1] += x * frac
            weight[index + 1] += frac

    for i in range(n_out):
        signal[i] = signal[i] / max(1.0, weight[i])

    return signal


def resample(
    mz: np.ndarray,
    intensity: np.ndarray,
    mz_range: Tuple[float, float],
    resolution: int = DEFAULT_RESOLUTION,
) -> np.ndarray:
    """Resample (mz, intensity) samples onto a grid of ``grid_size`` points.

    Args:
        mz: Sample m/z values, sorted ascending
        intensity: Sample intensities (same length as mz)
        mz_range: (min, max) m/z of the grid
        resolution: Grid points per Th

    Returns:
        Resampled signal, lightly smoothed with the 1-2-1 kernel
    """
    if len(mz) != len(intensity):
        raise InvalidArgumentError(
            f"mz and intensity arrays differ in length: {len(mz)} != {len(intensity)}"
        )
    if resolution < 1:
        raise InvalidArgumentError(f"resolution must be >= 1, got {resolution}")
    if mz_range[1] <= mz_range[0]:
        raise InvalidArgumentError(f"Empty m/z range: {mz_range}")

    n_out = grid_size(mz_range, resolution)
    signal = _resample_kernel(
        np.ascontiguousarray(mz, dtype=np.float64),
        np.ascontiguousarray(intensity, dtype=np.float64),
        float(mz_range[0]),
        float(mz_range[1]),
        resolution,
        n_out,
    )
    return smooth_a_little(signal)


def resample_spectrum(
    mz: np.ndarray,
    intensity: np.ndarray,
    mz_range: Tuple[float, float],
    resolution: int = DEFAULT_RESOLUTION,
    zero_charge: bool = False,
) -> Tuple[np.ndarray, np.ndarray]:
    """Resample a spectrum and return the grid alongside the signal.

    Args:
        mz: Sample m/z values, sorted ascending
        intensity: Sample intensities
        mz_range: (min, max) m/z of the grid
        resolution: Grid points per Th
        zero_charge: Report the grid as neutral mass (m/z minus H+)

    Returns:
        Tuple of (grid_mz, signal)
    """
    signal = resample(mz, intensity, mz_range, resolution)
    grid = mz_range[0] + np.arange(len(signal), dtype=np.float64) / resolution
    if zero_charge:
        grid -= HYDROGEN_ION_MASS
    return grid, signal
