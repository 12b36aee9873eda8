"""Lock-mass drift correction along a run.

A calibrant of known m/z (by default Glu-fibrinopeptide B, 2+) is sprayed
into dedicated calibration scans. Its observed m/z in each calibration
scan is an anchor; every feature is corrected by the lock-mass error
averaged over the two anchors bracketing its scan.

Key behaviour
-------------
- Features before the first anchor use the first anchor for both ends
- Features after the last anchor reuse the last bracket (extrapolation)
- Calibration scans without a qualifying lock-mass feature are skipped
- Corrections are absolute (Da) or scaled by m/z when ``use_ppm``

Examples
--------
>>> calibrator = LockmassCalibrator.from_scans(calibration_scans)
>>> corrected = calibrator.apply(features)
>>> print(f"Anchors: {calibrator.n_anchors}/{len(calibration_scans)}")
"""

from __future__ import annotations

import functools
import logging
import warnings
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from numba import njit

from alphawave.constants import (
    DEFAULT_LOCKMASS_CHARGE,
    DEFAULT_LOCKMASS_MZ,
    DEFAULT_LOCKMASS_WINDOW,
)
from alphawave.errors import InvalidArgumentError, NoCalibrationDataError
from alphawave.features.extraction import FeatureExtractionParams, extract_features, map_scans
from alphawave.features.feature import Feature
from alphawave.scan import ScanLike

logger = logging.getLogger(__name__)


@dataclass
class LockmassParams:
    """Lock-mass calibrant settings.

    Attributes:
        lockmass_mz: Theoretical calibrant m/z
        lockmass_charge: Charge the calibrant feature must carry
        mass_window: Max |observed - theoretical| in Da
        use_ppm: Scale corrections by feature m/z instead of shifting by Da
    """

    lockmass_mz: float = DEFAULT_LOCKMASS_MZ
    lockmass_charge: int = DEFAULT_LOCKMASS_CHARGE
    mass_window: float = DEFAULT_LOCKMASS_WINDOW
    use_ppm: bool = False

    def __post_init__(self):
        if self.lockmass_mz <= 0:
            raise InvalidArgumentError(f"lockmass_mz must be > 0, got {self.lockmass_mz}")
        if self.mass_window <= 0:
            raise InvalidArgumentError(f"mass_window must be > 0, got {self.mass_window}")


@dataclass(frozen=True)
class CalibrationObservation:
    """Observed lock-mass m/z in one calibration scan."""

    scan_index: int
    scan_number: int
    retention_time: float
    observed_mz: float


def find_lockmass_feature(features: Sequence[Feature], params: LockmassParams) -> Optional[Feature]:
    """Closest feature to the lock mass with the expected charge, within the mass window."""
    best = None
    best_diff = params.mass_window
    for feature in features:
        if feature.charge != params.lockmass_charge:
            continue
        diff = abs(feature.mz - params.lockmass_mz)
        if diff < best_diff:
            best = feature
            best_diff = diff
    return best


def _observe_scan(
    indexed_scan,
    params: LockmassParams,
    extraction_params: FeatureExtractionParams,
) -> Optional[CalibrationObservation]:
    scan_index, scan = indexed_scan
    feature = find_lockmass_feature(extract_features(scan, extraction_params), params)
    if feature is None:
        logger.debug(f"No lock-mass feature in calibration scan {scan.get_scan_number()}")
        return None
    return CalibrationObservation(
        scan_index=scan_index,
        scan_number=scan.get_scan_number(),
        retention_time=scan.get_retention_time(),
        observed_mz=feature.mz,
    )


def collect_lockmass_observations(
    calibration_scans: Sequence[ScanLike],
    params: Optional[LockmassParams] = None,
    extraction_params: Optional[FeatureExtractionParams] = None,
    n_threads: Optional[int] = None,
) -> List[Optional[CalibrationObservation]]:
    """Find the lock-mass feature in every calibration scan.

    Args:
        calibration_scans: Calibration scans in acquisition order
        params: Lock-mass settings
        extraction_params: Extraction settings (default: lock-mass preset)
        n_threads: Worker threads (None: one per CPU, 1: run serially)

    Returns:
        One entry per scan, None where no feature qualified
    """
    if params is None:
        params = LockmassParams()
    if extraction_params is None:
        extraction_params = FeatureExtractionParams.for_lockmass(params.lockmass_mz)

    observe = functools.partial(_observe_scan, params=params, extraction_params=extraction_params)
    observations = map_scans(observe, list(enumerate(calibration_scans)), n_threads)

    n_found = sum(o is not None for o in observations)
    logger.info(f"Lock mass {params.lockmass_mz:.4f} found in {n_found}/{len(observations)} calibration scans")
    return observations


@njit
def _bracket_mean_mz(
    feature_scans: np.ndarray,
    anchor_scans: np.ndarray,
    anchor_mz: np.ndarray,
    anchor_valid: np.ndarray,
    first: int,
) -> np.ndarray:
    """Mean anchor m/z of the (before, after) bracket for scan-sorted features.

    ``after`` advances over invalid anchors; once it is the last anchor
    the walk stops and ``before`` collapses onto it.
    """
    n_anchors = anchor_scans.shape[0]
    result = np.empty(feature_scans.shape[0], dtype=np.float64)

    # i + 1 is the next anchor index to look at; starting one before first
    # keeps the anchor right after first reachable
    i = first - 1
    before = first
    after = first
    for j in range(feature_scans.shape[0]):
        scan = feature_scans[j]
        while scan > anchor_scans[after]:
            if i < n_anchors - 2:
                i += 1
                if not anchor_valid[i + 1]:
                    continue
                before = after
                after = i + 1
            else:
                before = after
                break
        result[j] = 0.5 * (anchor_mz[before] + anchor_mz[after])

    return result


def lockmass_corrections(
    scan_numbers: np.ndarray,
    mz_values: np.ndarray,
    observations: Sequence[Optional[CalibrationObservation]],
    params: LockmassParams,
) -> np.ndarray:
    """Per-feature m/z correction from the bracketing lock-mass anchors.

    Parameters
    ----------
    scan_numbers : np.ndarray
        Scan number of each feature (any order)
    mz_values : np.ndarray
        m/z of each feature, used only when ``params.use_ppm``
    observations : Sequence[Optional[CalibrationObservation]]
        Anchors in acquisition order, None for scans without a lock mass
    params : LockmassParams
        Lock-mass settings

    Returns
    -------
    np.ndarray
        Correction to add to each feature's m/z, in input order

    Raises
    ------
    NoCalibrationDataError
        If no observation is usable
    """
    valid = np.array([o is not None for o in observations], dtype=np.bool_)
    if not valid.any():
        raise NoCalibrationDataError(
            f"No lockmass features found ({len(observations)} calibration scans)"
        )

    scan_numbers = np.asarray(scan_numbers, dtype=np.int64)
    mz_values = np.asarray(mz_values, dtype=np.float64)
    if scan_numbers.shape != mz_values.shape:
        raise InvalidArgumentError(
            f"scan_numbers and mz_values differ in shape: {scan_numbers.shape} != {mz_values.shape}"
        )

    anchor_scans = np.array([o.scan_number if o is not None else 0 for o in observations], dtype=np.int64)
    anchor_mz = np.array([o.observed_mz if o is not None else np.nan for o in observations], dtype=np.float64)
    first = int(np.argmax(valid))

    order = np.argsort(scan_numbers, kind="stable")
    mean_mz = np.empty(len(scan_numbers), dtype=np.float64)
    mean_mz[order] = _bracket_mean_mz(scan_numbers[order], anchor_scans, anchor_mz, valid, first)

    corrections = params.lockmass_mz - mean_mz
    if params.use_ppm:
        corrections = corrections / params.lockmass_mz * mz_values
    return corrections


def apply_lockmass_correction(
    features: Sequence[Feature],
    observations: Sequence[Optional[CalibrationObservation]],
    params: Optional[LockmassParams] = None,
) -> List[Feature]:
    """Corrected copies of ``features`` in input order; the inputs are not modified.

    Raises:
        NoCalibrationDataError: If no observation is usable
    """
    if params is None:
        params = LockmassParams()
    corrections = lockmass_corrections(
        np.array([f.scan for f in features], dtype=np.int64),
        np.array([f.mz for f in features], dtype=np.float64),
        observations,
        params,
    )
    return [f.with_mz(f.mz + c) for f, c in zip(features, corrections)]


class LockmassCalibrator:
    """Lock-mass calibration of one run.

    Parameters
    ----------
    observations : Sequence[Optional[CalibrationObservation]]
        Lock-mass anchors in acquisition order
    params : LockmassParams, optional
        Lock-mass settings

    Attributes
    ----------
    n_anchors : int
        Number of calibration scans with a usable lock mass
    n_calibration_scans : int
        Number of calibration scans

    Examples
    --------
    >>> calibrator = LockmassCalibrator.from_scans(calibration_scans)
    >>> corrected = calibrator.apply(features)
    >>> stats = calibrator.get_statistics()
    >>> print(f"Median drift: {stats['median_deviation_ppm']:.1f} ppm")
    """

    def __init__(
        self,
        observations: Sequence[Optional[CalibrationObservation]],
        params: Optional[LockmassParams] = None,
    ):
        self.params = params if params is not None else LockmassParams()
        self.observations = list(observations)
        self.n_calibration_scans = len(self.observations)
        self.n_anchors = sum(o is not None for o in self.observations)

        if self.n_calibration_scans and self.n_anchors < 2:
            warnings.warn(
                f"Only {self.n_anchors} lock-mass anchors in {self.n_calibration_scans} "
                "calibration scans. Corrections will be constant along the run."
            )

    @classmethod
    def from_scans(
        cls,
        calibration_scans: Sequence[ScanLike],
        params: Optional[LockmassParams] = None,
        extraction_params: Optional[FeatureExtractionParams] = None,
        n_threads: Optional[int] = None,
    ) -> LockmassCalibrator:
        """Run lock-mass extraction on the calibration scans and fit."""
        params = params if params is not None else LockmassParams()
        observations = collect_lockmass_observations(
            calibration_scans, params, extraction_params, n_threads=n_threads
        )
        return cls(observations, params)

    def apply(self, features: Sequence[Feature]) -> List[Feature]:
        """Corrected copies of ``features``.

        Raises
        ------
        NoCalibrationDataError
            If no calibration scan had a usable lock mass
        """
        corrected = apply_lockmass_correction(features, self.observations, self.params)
        logger.info(f"Applied lock-mass correction to {len(corrected):,} features")
        return corrected

    def drift_table(self) -> np.ndarray:
        """(retention_time, observed - theoretical m/z) per anchor, shape (n_anchors, 2)."""
        rows = [
            (o.retention_time, o.observed_mz - self.params.lockmass_mz)
            for o in self.observations
            if o is not None
        ]
        return np.array(rows, dtype=np.float64).reshape(-1, 2)

    def get_statistics(self) -> dict[str, float | int]:
        """Get calibration statistics.

        Returns
        -------
        dict
            Dictionary with anchor counts and lock-mass deviation statistics
        """
        deviations = self.drift_table()[:, 1]
        if len(deviations) == 0:
            median_da = 0.0
            max_abs_da = 0.0
        else:
            median_da = float(np.median(deviations))
            max_abs_da = float(np.max(np.abs(deviations)))

        return {
            'n_calibration_scans': self.n_calibration_scans,
            'n_anchors': self.n_anchors,
            'median_deviation_da': median_da,
            'median_deviation_ppm': median_da / self.params.lockmass_mz * 1e6,
            'max_abs_deviation_da': max_abs_da,
            'max_abs_deviation_ppm': max_abs_da / self.params.lockmass_mz * 1e6,
        }
