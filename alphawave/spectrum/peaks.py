"""
Wavelet peak picking on resampled spectra.

Peaks are located on a signal-domain wavelet detail (MODWT, Haar): the
level-3 detail responds to isotope-peak sized structure while ignoring
both single-point noise and slowly varying background.
"""

from dataclasses import dataclass
from typing import List

import numpy as np
from numba import njit

from alphawave.constants import (
    DEFAULT_MEDIAN_WINDOW,
    DEFAULT_MIN_SIGNAL_TO_MEDIAN,
    DEFAULT_PEAK_THRESHOLD,
    DEFAULT_RESOLUTION,
    FLOAT32_MIN,
)
from alphawave.errors import InvalidArgumentError
from alphawave.spectrum.background import median_window
from alphawave.spectrum.smoothing import smooth_a_little
from alphawave.wavelet.filters import get_filter
from alphawave.wavelet.transform import decompose, wavelet_dx


@dataclass(eq=False)
class Peak:
    """A single centroided peak on the resampled grid.

    ``excluded`` is working state of the peak combiner: once a peak is
    assigned to a feature it is excluded from further isotope searches.
    """

    mz: float
    intensity: float
    scan: int = -1
    background: float = 0.0
    median: float = 0.0
    excluded: bool = False


@njit(nogil=True)
def pick_peak_indexes(signal: np.ndarray, min_filter: float) -> np.ndarray:
    """Indexes of local maxima higher than ``min_filter``.

    Walks up each rising flank (ties included), records the top, then walks
    down the falling flank. On a plateau the last sample is reported.
    """
    n = signal.shape[0]
    found = np.empty(n, dtype=np.int64)
    n_found = 0
    prev = -FLOAT32_MIN
    i = 0
    while i < n:
        while i < n and prev <= signal[i]:
            prev = signal[i]
            i += 1
        if prev > min_filter:
            found[n_found] = i - 1
            n_found += 1
        while i < n and prev >= signal[i]:
            prev = signal[i]
            i += 1
    return found[:n_found]


@njit(nogil=True)
def find_minima_indexes(signal: np.ndarray) -> np.ndarray:
    """Index of the most negative sample within each negative excursion."""
    n = signal.shape[0]
    found = np.empty(n, dtype=np.int64)
    n_found = 0
    i = 0
    while i < n:
        while i < n and signal[i] >= 0:
            i += 1
        if i >= n:
            break
        lowest = i
        while i < n and signal[i] <= 0:
            if signal[i] < signal[lowest]:
                lowest = i
            i += 1
        found[n_found] = lowest
        n_found += 1
    return found[:n_found]


def pick_peaks(
    mz: np.ndarray,
    signal: np.ndarray,
    min_filter: float = -np.inf,
    scan: int = -1,
) -> List[Peak]:
    """Local maxima of ``signal`` as :class:`Peak` objects."""
    if len(mz) != len(signal):
        raise InvalidArgumentError(
            f"mz and signal arrays differ in length: {len(mz)} != {len(signal)}"
        )
    signal = np.ascontiguousarray(signal, dtype=np.float64)
    return [
        Peak(mz=float(mz[p]), intensity=float(signal[p]), scan=scan)
        for p in pick_peak_indexes(signal, min_filter)
    ]


def wavelet_peaks_d3(
    mz: np.ndarray,
    x: np.ndarray,
    scan: int = -1,
    level: int = 3,
    threshold: float = DEFAULT_PEAK_THRESHOLD,
    noise_window: int = DEFAULT_MEDIAN_WINDOW,
    min_signal_to_median: float = DEFAULT_MIN_SIGNAL_TO_MEDIAN,
) -> List[Peak]:
    """Peaks from the maxima of the level-3 wavelet detail.

    A maximum of the detail above ``threshold`` is kept only if the signal
    there is at least ``min_signal_to_median * max(1, median)``, with the
    median taken over ``noise_window`` grid points.

    Args:
        mz: Grid m/z values
        x: Background-free, smoothed signal on the grid
        scan: Scan number stored on the peaks
        level: Wavelet detail level
        threshold: Minimum detail value of a maximum
        noise_window: Median window width
        min_signal_to_median: Signal-to-median acceptance ratio

    Returns:
        Accepted peaks, ascending in m/z
    """
    if len(mz) != len(x):
        raise InvalidArgumentError(f"mz and signal arrays differ in length: {len(mz)} != {len(x)}")
    x = np.ascontiguousarray(x, dtype=np.float64)
    if len(x) == 0:
        return []

    noise = median_window(x, noise_window)
    detail = np.ascontiguousarray(wavelet_dx(x, level), dtype=np.float64)

    peaks = []
    for p in pick_peak_indexes(detail, threshold):
        if x[p] < min_signal_to_median * max(1.0, noise[p]):
            continue
        peaks.append(Peak(mz=float(mz[p]), intensity=float(x[p]), scan=scan, median=float(noise[p])))
    return peaks


def wavelet_peaks(
    mz: np.ndarray,
    x: np.ndarray,
    scan: int = -1,
    resolution: int = DEFAULT_RESOLUTION,
    min_signal_to_median: float = 2.0,
) -> List[Peak]:
    """Peaks from the minima of a twice-decomposed level-3 detail.

    The level-3 MODWT coefficients of ``x`` are decomposed again and the
    negative excursions of that level-3 detail mark peak centres after a
    fixed 7-point shift compensating the filter delay. Noise is estimated
    with a median window five times the resolution.
    """
    if len(mz) != len(x):
        raise InvalidArgumentError(f"mz and signal arrays differ in length: {len(mz)} != {len(x)}")
    x = np.ascontiguousarray(x, dtype=np.float64)
    if len(x) == 0:
        return []

    haar = get_filter("haar")
    noise = median_window(x, resolution * 5)
    coefficients = decompose(x, 4, haar, "modwt", "periodic")[2]
    detail = np.ascontiguousarray(decompose(coefficients, 4, haar, "modwt", "periodic")[2])
    smooth_a_little(detail)
    detail = np.roll(detail, -7)

    peaks = []
    for p in find_minima_indexes(detail):
        if x[p] < min_signal_to_median * noise[p]:
            continue
        peaks.append(Peak(mz=float(mz[p]), intensity=float(x[p]), scan=scan, median=float(noise[p])))
    return peaks
