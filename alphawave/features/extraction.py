"""
Per-scan feature extraction pipeline.

resample -> remove moving-minimum background -> FFT smooth ->
wavelet D3 peak picking -> peak combination.

Scans are independent, so runs are processed with a thread pool; the
numba kernels release the GIL.
"""

import functools
import logging
import multiprocessing.pool
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from alphawave.constants import (
    DEFAULT_BACKGROUND_WINDOW,
    DEFAULT_MAX_CHARGE,
    DEFAULT_MEDIAN_WINDOW,
    DEFAULT_MIN_SIGNAL_TO_MEDIAN,
    DEFAULT_PEAK_THRESHOLD,
    DEFAULT_RESOLUTION,
    DEFAULT_SMOOTH_FACTOR,
)
from alphawave.errors import InvalidArgumentError
from alphawave.features.combining import PeakCombiner
from alphawave.features.feature import Feature
from alphawave.features.scoring import DEFAULT_MAX_ABS_DISTANCE_BETWEEN_PEAKS
from alphawave.scan import ScanLike
from alphawave.spectrum.background import remove_background
from alphawave.spectrum.peaks import Peak, wavelet_peaks_d3
from alphawave.spectrum.resampling import resample_spectrum
from alphawave.spectrum.smoothing import fft_smooth

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FeatureExtractionParams:
    """Parameters of the per-scan extraction pipeline.

    Defaults match peptide MS1 data resampled at 36 points per Th.
    """

    # Resampling
    mz_range: Tuple[float, float] = (400.0, 1600.0)
    resolution: int = DEFAULT_RESOLUTION

    # Background / noise windows (grid points)
    background_window: int = DEFAULT_BACKGROUND_WINDOW
    median_window: int = DEFAULT_MEDIAN_WINDOW

    # Smoothing
    smooth_factor: float = DEFAULT_SMOOTH_FACTOR

    # Peak picking
    wavelet_level: int = 3
    peak_threshold: float = DEFAULT_PEAK_THRESHOLD
    min_signal_to_median: float = DEFAULT_MIN_SIGNAL_TO_MEDIAN

    # Peak combination
    max_charge: int = DEFAULT_MAX_CHARGE
    max_abs_distance_between_peaks: float = DEFAULT_MAX_ABS_DISTANCE_BETWEEN_PEAKS
    negative_charge_mode: bool = False

    def __post_init__(self):
        lo, hi = self.mz_range
        if not hi > lo:
            raise InvalidArgumentError(f"mz_range must be (min, max) with max > min, got {self.mz_range}")
        if self.resolution < 2:
            raise InvalidArgumentError(f"resolution must be >= 2, got {self.resolution}")
        if self.background_window < 1 or self.median_window < 1:
            raise InvalidArgumentError(
                f"Windows must be >= 1, got background={self.background_window}, "
                f"median={self.median_window}"
            )
        if self.smooth_factor <= 0:
            raise InvalidArgumentError(f"smooth_factor must be > 0, got {self.smooth_factor}")
        if self.wavelet_level < 1:
            raise InvalidArgumentError(f"wavelet_level must be >= 1, got {self.wavelet_level}")
        if self.max_charge < 1:
            raise InvalidArgumentError(f"max_charge must be >= 1, got {self.max_charge}")

    @classmethod
    def for_lockmass(cls, lockmass_mz: float, **overrides) -> 'FeatureExtractionParams':
        """Narrow window [lockmass - 1, lockmass + 4] around a calibrant.

        Args:
            lockmass_mz: Expected calibrant m/z
            **overrides: Any other field

        Returns:
            FeatureExtractionParams for calibration scans
        """
        return cls(mz_range=(lockmass_mz - 1.0, lockmass_mz + 4.0), **overrides)

    def make_combiner(self) -> PeakCombiner:
        return PeakCombiner(
            max_charge=self.max_charge,
            resolution=self.resolution,
            max_abs_distance_between_peaks=self.max_abs_distance_between_peaks,
            negative_charge_mode=self.negative_charge_mode,
        )


def extract_peaks(
    mz,
    intensity,
    params: FeatureExtractionParams,
    scan_number: int = -1,
) -> List[Peak]:
    """Run resampling, background removal, smoothing and peak picking.

    Args:
        mz: Raw sample m/z values, ascending
        intensity: Raw sample intensities
        params: Pipeline parameters
        scan_number: Scan number stored on the peaks

    Returns:
        Peaks ascending in m/z
    """
    grid_mz, signal = resample_spectrum(mz, intensity, params.mz_range, params.resolution)
    signal, _ = remove_background(signal, params.background_window)
    signal = fft_smooth(signal, params.smooth_factor)
    return wavelet_peaks_d3(
        grid_mz,
        signal,
        scan=scan_number,
        level=params.wavelet_level,
        threshold=params.peak_threshold,
        noise_window=params.median_window,
        min_signal_to_median=params.min_signal_to_median,
    )


def extract_features(scan: ScanLike, params: Optional[FeatureExtractionParams] = None) -> List[Feature]:
    """Extract charge-resolved features from one scan."""
    if params is None:
        params = FeatureExtractionParams()

    mz, intensity = scan.get_spectrum()
    scan_number = scan.get_scan_number()
    retention_time = scan.get_retention_time()

    peaks = extract_peaks(mz, intensity, params, scan_number=scan_number)
    features = params.make_combiner().create_features_from_peaks(
        peaks, scan_times={scan_number: retention_time}
    )

    logger.debug(
        f"Scan {scan_number} (RT {retention_time:.2f}): "
        f"{len(peaks)} peaks -> {len(features)} features"
    )
    return features


def map_scans(
    func: Callable[[ScanLike], T],
    scans: Iterable[ScanLike],
    n_threads: Optional[int] = None,
) -> List[T]:
    """Apply ``func`` to every scan in a thread pool, keeping scan order.

    Args:
        func: Per-scan function
        scans: Scans to process
        n_threads: Worker threads (None: one per CPU, 1: run serially)

    Returns:
        One result per scan, in input order
    """
    scans = list(scans)
    if n_threads == 1 or len(scans) <= 1:
        return [func(scan) for scan in scans]

    with multiprocessing.pool.ThreadPool(n_threads) as pool:
        return list(pool.imap(func, scans))


def extract_features_from_scans(
    scans: Iterable[ScanLike],
    params: Optional[FeatureExtractionParams] = None,
    n_threads: Optional[int] = None,
) -> List[Feature]:
    """Extract features from many scans in parallel.

    Args:
        scans: Scans to process
        params: Pipeline parameters (default: FeatureExtractionParams())
        n_threads: Worker threads (None: one per CPU)

    Returns:
        Features of all scans, grouped in scan input order
    """
    if params is None:
        params = FeatureExtractionParams()
    scans = list(scans)
    if not scans:
        logger.warning("No scans given, nothing to extract")
        return []

    per_scan = map_scans(functools.partial(extract_features, params=params), scans, n_threads)
    features = [feature for scan_features in per_scan for feature in scan_features]

    logger.info(f"Extracted {len(features):,} features from {len(scans):,} scans")
    return features
