"""
Baseline and noise estimation for resampled spectra.

The signal is cut into fixed-width buckets. Each bucket is summarised by its
minimum (baseline) or median (noise level). Each summary is lowered to the
smaller of it and its neighbours, smoothed, and linearly interpolated back
to full length.
"""

from typing import Tuple

import numpy as np
from numba import njit

from alphawave.constants import DEFAULT_BACKGROUND_WINDOW, DEFAULT_MEDIAN_WINDOW
from alphawave.errors import InvalidArgumentError
from alphawave.spectrum.smoothing import smooth_a_little

FLOAT32_MAX = 3.4028234663852886e38


@njit(nogil=True)
def interpolate(buckets: np.ndarray, length: int, window: int) -> np.ndarray:
    """Linearly interpolate per-bucket values back to ``length`` samples.

    Bucket values are anchored at bucket centres; the first and last
    ``window`` samples hold the end values.
    """
    result = np.zeros(length, dtype=np.float64)
    n_buckets = buckets.shape[0]
    if length == 0 or n_buckets == 0:
        return result

    window = min(length, window)
    result[:window] = buckets[0]
    result[length - window:] = buckets[n_buckets - 1]

    for w in range(n_buckets - 1):
        start = length * w // n_buckets + window // 2
        end = length * (w + 1) // n_buckets + window // 2
        width = end - start
        if width <= 0:
            continue
        value = buckets[w]
        slope = (buckets[w + 1] - value) / width
        for i in range(width):
            if start + i >= length:
                break
            result[start + i] = value + slope * i

    return result


@njit(nogil=True)
def _neighbour_minimum(buckets):
    n = buckets.shape[0]
    for i in range(n - 1):
        buckets[i] = min(buckets[i], buckets[i + 1])
    for i in range(n - 1, 0, -1):
        buckets[i] = min(buckets[i - 1], buckets[i])
    return buckets


@njit(nogil=True)
def _bucket_minima(x, window):
    n = x.shape[0]
    n_buckets = (n - 1) // window + 1
    buckets = np.empty(n_buckets, dtype=np.float64)
    for b in range(n_buckets):
        start = b * window
        end = min(n, start + window)
        lowest = FLOAT32_MAX
        i = start
        # Nothing can beat a non-positive minimum
        while i < end and lowest > 0:
            if x[i] < lowest:
                lowest = x[i]
            i += 1
        buckets[b] = lowest
    return buckets


@njit(nogil=True)
def _bucket_medians(x, window, use_abs):
    n = x.shape[0]
    n_buckets = (n - 1) // window + 1
    buckets = np.empty(n_buckets, dtype=np.float64)
    for b in range(n_buckets):
        start = b * window
        end = min(n, start + window)
        values = x[start:end].copy()
        if use_abs:
            values = np.abs(values)
        values.sort()
        buckets[b] = values[values.shape[0] // 2]
    return buckets


def _check_window(x, window):
    if window < 1:
        raise InvalidArgumentError(f"window must be >= 1, got {window}")
    return np.ascontiguousarray(x, dtype=np.float64)


def minima_window(x: np.ndarray, window: int = DEFAULT_BACKGROUND_WINDOW) -> np.ndarray:
    """Moving-minimum baseline estimate.

    Args:
        x: Resampled signal
        window: Bucket width in grid points

    Returns:
        Baseline of the same length as ``x``
    """
    x = _check_window(x, window)
    if len(x) == 0:
        return x.copy()
    buckets = _neighbour_minimum(_bucket_minima(x, window))
    smooth_a_little(buckets)
    return interpolate(buckets, len(x), window)


def median_window(
    x: np.ndarray,
    window: int = DEFAULT_MEDIAN_WINDOW,
    use_abs: bool = False,
) -> np.ndarray:
    """Moving-median noise estimate (upper median per bucket)."""
    x = _check_window(x, window)
    if len(x) == 0:
        return x.copy()
    buckets = _neighbour_minimum(_bucket_medians(x, window, use_abs))
    smooth_a_little(buckets)
    return interpolate(buckets, len(x), window)


def remove_background(
    x: np.ndarray,
    window: int = DEFAULT_BACKGROUND_WINDOW,
) -> Tuple[np.ndarray, np.ndarray]:
    """Subtract the moving-minimum baseline and clamp at zero.

    Returns:
        Tuple of (background-free signal, baseline)
    """
    background = minima_window(x, window)
    signal = np.maximum(0.0, np.asarray(x, dtype=np.float64) - background)
    return signal, background
