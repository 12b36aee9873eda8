"""Spectrum smoothing.

High-performance implementations of:
- 1-2-1 neighbour smoothing (numba-optimized, in place)
- Gaussian low-pass filtering in the Fourier domain

Designed for resampled profile spectra at ~36 points per Th, where isotope
peaks are only a few grid points wide.
"""

import numpy as np
from numba import njit

from alphawave.constants import DEFAULT_SMOOTH_FACTOR, FLOAT32_MIN


@njit(nogil=True)
def smooth_a_little(x: np.ndarray) -> np.ndarray:
    """Apply a (1, 2, 1) / 4 kernel in place, replicating the edge samples.

    Args:
        x: Signal, modified in place

    Returns:
        The smoothed ``x``
    """
    n = x.shape[0]
    if n == 0:
        return x

    last = x[0]
    cur = x[0]
    stop = n - 1
    for i in range(stop):
        nxt = x[i + 1]
        x[i] = (last + cur + cur + nxt) / 4.0
        last = cur
        cur = nxt
    x[stop] = (last + cur + cur + cur) / 4.0
    return x


def gaussian_profile(n: int, sigma: float) -> np.ndarray:
    """Unnormalized Gaussian ``exp(-x^2 / (2 sigma^2))`` sampled on ``n`` points of [0, 1].

    Values that underflow below the smallest float32 are set to zero.
    """
    if n == 1:
        return np.ones(1, dtype=np.float64)
    x = np.arange(n, dtype=np.float64) / (n - 1)
    profile = np.exp(-(x * x) / (2.0 * sigma * sigma))
    profile[profile < FLOAT32_MIN] = 0.0
    return profile


def fft_smooth(x: np.ndarray, smooth_factor: float = DEFAULT_SMOOTH_FACTOR) -> np.ndarray:
    """Gaussian low-pass filter in the Fourier domain.

    The DC term is kept unchanged. Frequency bin ``f >= 1`` is multiplied by
    a Gaussian over the normalized frequency ``(f - 1) / (n_bins - 1)`` with
    sigma ``1 / smooth_factor``, so larger factors smooth more.

    Args:
        x: Real signal
        smooth_factor: Smoothing strength (> 0)

    Returns:
        Smoothed signal (float64, same length as input)

    Examples:
        >>> # Default smoothing of a resampled spectrum
        >>> smoothed = fft_smooth(signal)

        >>> # Barely touch the signal
        >>> smoothed = fft_smooth(signal, smooth_factor=1.0)
    """
    x = np.asarray(x, dtype=np.float64)
    n = len(x)
    n_bins = n // 2
    if n_bins < 1:
        return x.copy()

    spectrum = np.fft.rfft(x)
    spectrum[1:n_bins + 1] *= gaussian_profile(n_bins, 1.0 / smooth_factor)
    return np.fft.irfft(spectrum, n=n)
