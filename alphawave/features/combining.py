"""
Combination of picked peaks into charge-resolved features.

Peaks are processed from most to least intense. Each unexplained apex
peak tries every charge state against every plausible monoisotopic peak
to its left. The best scoring isotope cluster becomes a feature and all
of its peaks are excluded from later searches.
"""

import bisect
import logging
import math
from typing import Dict, List, Optional, Sequence

from alphawave.constants import DEFAULT_MAX_CHARGE, DEFAULT_RESOLUTION
from alphawave.features.feature import Feature
from alphawave.features.scoring import DEFAULT_MAX_ABS_DISTANCE_BETWEEN_PEAKS, FeatureScorer
from alphawave.spectrum.peaks import Peak

logger = logging.getLogger(__name__)

# Search window around the apex peak
MZ_WINDOW_BELOW = 2.1
MZ_WINDOW_ABOVE = 6.1
SCAN_WINDOW = 9

# Candidates with KL this much worse than the best are dropped
KL_WINDOW = 0.5


def distance_nearest_fraction(x: float, denom: float) -> float:
    """Distance of ``x`` to the nearest multiple of ``1 / denom``."""
    t = x * denom
    # round half up
    delta = abs(t - math.floor(t + 0.5))
    return delta / denom


def determine_best_feature(candidates: List[Feature]) -> Optional[Feature]:
    """Pick the best of several candidate interpretations of one apex.

    1. Drop candidates whose KL exceeds the best KL by more than 0.5.
    2. Drop b if a has a multiple of b's charge, contains b's
       monoisotopic peak, and explains more peaks (or at least 6).
    3. Rank the rest by ``peaks * 0.1 - kl``.

    Args:
        candidates: Scored candidates, ascending by m/z then descending charge

    Returns:
        Best feature, or None for no candidates
    """
    if not candidates:
        return None

    min_kl = min(c.kl for c in candidates)
    candidates = [c for c in candidates if not c.kl > min_kl + KL_WINDOW]
    if len(candidates) == 1:
        return candidates[0]

    pruned = list(candidates)
    for i, a in enumerate(candidates[:-1]):
        for b in candidates[i + 1:]:
            if (abs(a.charge) % abs(b.charge) == 0
                    and a.contains_peak(b.comprised[0])
                    and (a.peaks > b.peaks or a.peaks >= 6)):
                pruned = [c for c in pruned if c is not b]
    if len(pruned) == 1:
        return pruned[0]

    finalists = sorted(pruned, key=lambda f: f.peaks * 0.1 - f.kl, reverse=True)
    return finalists[0]


class PeakCombiner:
    """Groups peaks into isotope-resolved features.

    Attributes:
        max_charge: Highest charge state tried
        resolution: Grid points per Th of the peak source
        max_abs_distance_between_peaks: Spacing tolerance before grid scaling
        negative_charge_mode: Assign negative charges
        scorer: Isotope pattern scorer
    """

    def __init__(
        self,
        max_charge: int = DEFAULT_MAX_CHARGE,
        resolution: int = DEFAULT_RESOLUTION,
        max_abs_distance_between_peaks: float = DEFAULT_MAX_ABS_DISTANCE_BETWEEN_PEAKS,
        negative_charge_mode: bool = False,
        scorer: Optional[FeatureScorer] = None,
    ):
        self.max_charge = max_charge
        self.resolution = resolution
        self.max_abs_distance_between_peaks = max_abs_distance_between_peaks
        self.negative_charge_mode = negative_charge_mode
        if scorer is None:
            scorer = FeatureScorer(
                resolution=resolution,
                max_abs_distance_between_peaks=max_abs_distance_between_peaks,
            )
        self.scorer = scorer

    def _nearby_peaks(self, apex: Peak, peaks_by_mz: List[Peak], mz_keys: List[float]) -> List[Peak]:
        lo = bisect.bisect_left(mz_keys, apex.mz - MZ_WINDOW_BELOW)
        hi = bisect.bisect_right(mz_keys, apex.mz + MZ_WINDOW_ABOVE)
        nearby = [
            p for p in peaks_by_mz[lo:hi]
            if not p.excluded and abs(p.scan - apex.scan) <= SCAN_WINDOW
        ]
        nearby.sort(key=lambda p: p.intensity, reverse=True)
        nearby.sort(key=lambda p: p.mz)

        # one peak per m/z, the one closest in scan to the apex
        unique: List[Peak] = []
        for p in nearby:
            if unique and unique[-1].mz == p.mz:
                if abs(p.scan - apex.scan) < abs(unique[-1].scan - apex.scan):
                    unique[-1] = p
            else:
                unique.append(p)
        return unique

    def _candidates(self, apex: Peak, peaks: List[Peak]) -> List[Feature]:
        max_resampled_distance = self.max_abs_distance_between_peaks / (self.resolution - 1)
        candidates = []
        for p in peaks:
            # looking for the monoisotopic peak, left of the apex
            if p.mz > apex.mz:
                break
            if p.excluded:
                continue
            # even at 6400 Da the leading peak is not expected below ~1/6 of the highest
            if p.intensity < apex.intensity / 10.0:
                continue
            distance = apex.mz - p.mz

            for abs_charge in range(abs(self.max_charge), 0, -1):
                if distance_nearest_fraction(distance, abs_charge) >= 2 * max_resampled_distance:
                    continue
                charge = -abs_charge if self.negative_charge_mode else abs_charge
                candidate = Feature.from_peak(apex, mz=p.mz, charge=charge)
                candidate.dist = self.scorer.score_feature(candidate, peaks)
                if candidate.peaks == 1:
                    continue
                if not candidate.contains_peak(apex):
                    continue
                candidates.append(candidate)
        return candidates

    def create_features_from_peaks(
        self,
        peaks: Sequence[Peak],
        scan_times: Optional[Dict[int, float]] = None,
    ) -> List[Feature]:
        """Combine peaks into features, most intense apex first.

        Marks every peak it assigns as ``excluded``.

        Args:
            peaks: Picked peaks (any order), possibly from several scans
            scan_times: Optional scan number -> retention time lookup

        Returns:
            Features in the order their apex peaks were processed
        """
        peaks_by_mz = sorted(peaks, key=lambda p: p.mz)
        mz_keys = [p.mz for p in peaks_by_mz]
        peaks_by_intensity = sorted(peaks, key=lambda p: p.intensity, reverse=True)

        features = []
        for apex in peaks_by_intensity:
            if apex.excluded:
                continue

            nearby = self._nearby_peaks(apex, peaks_by_mz, mz_keys)
            best = determine_best_feature(self._candidates(apex, nearby))

            if best is None:
                best = Feature.from_peak(apex, charge=0)
                best.comprised = [apex]

            if best.peaks == 1:
                best.charge = 0
                best.kl = -1.0
            best.update_mass()

            if scan_times is not None and apex.scan in scan_times:
                best.time = scan_times[apex.scan]

            features.append(best)

            for p in best.comprised:
                if p is not None:
                    p.excluded = True

        logger.debug(f"Combined {len(peaks)} peaks into {len(features)} features")
        return features
