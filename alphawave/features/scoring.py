"""
Isotope-pattern scoring of candidate features.

For a trial (monoisotopic m/z, charge) the scorer walks the isotope
positions ``mz + i/z`` through an m/z-sorted peak list, refines the m/z,
and scores the intensity pattern against the Poisson isotope model.
"""

import bisect
from typing import List, Optional, Sequence

import numpy as np

from alphawave.constants import DEFAULT_RESOLUTION, HYDROGEN_ION_MASS
from alphawave.features.feature import Feature
from alphawave.features.isotopes import N_ISOTOPES, kl_poisson_distance, poisson_distribution
from alphawave.spectrum.peaks import Peak

# Resampled-grid distance between adjacent peaks, in Th
DEFAULT_MAX_ABS_DISTANCE_BETWEEN_PEAKS = 1.0
DEFAULT_MAX_PEAKS_PER_FEATURE = 10

# 1/6 Th off is bad, 1/4 off in scaled intensity is bad
SUMSQUARES_MZ_WEIGHT = 6.0
SUMSQUARES_SCALED_INTENSITY_WEIGHT = 4.0


def find_closest_peak(peaks: Sequence[Peak], mz: float, start: int) -> int:
    """Walk right from ``start`` while the m/z distance keeps shrinking."""
    dist = abs(mz - peaks[start].mz)
    i = start + 1
    while i < len(peaks):
        d = abs(mz - peaks[i].mz)
        if d > dist:
            break
        dist = d
        i += 1
    return i - 1


class FeatureScorer:
    """Scores candidate features against an m/z-sorted peak list.

    Parameters
    ----------
    resolution : int
        Resampling resolution (grid points per Th) the peaks come from.
    max_peaks_per_feature : int
        Maximum number of isotope positions walked.
    max_abs_distance_between_peaks : float
        Peak spacing tolerance before scaling by the grid step.

    Examples
    --------
    >>> scorer = FeatureScorer()
    >>> candidate = Feature.from_peak(apex, mz=mono_mz, charge=2)
    >>> candidate.dist = scorer.score_feature(candidate, peaks_by_mz)
    """

    def __init__(
        self,
        resolution: int = DEFAULT_RESOLUTION,
        max_peaks_per_feature: int = DEFAULT_MAX_PEAKS_PER_FEATURE,
        max_abs_distance_between_peaks: float = DEFAULT_MAX_ABS_DISTANCE_BETWEEN_PEAKS,
    ):
        self.resolution = resolution
        self.max_peaks_per_feature = max_peaks_per_feature
        self.max_abs_distance_between_peaks = max_abs_distance_between_peaks

    def score_feature(self, feature: Feature, peaks: Sequence[Peak]) -> float:
        """Fill in the isotope pattern of ``feature`` and return its 2-D distance score.

        Updates ``mz``, ``kl``, ``peaks``, ``skipped_peaks``, ``comprised``
        and ``mz_peak0`` of ``feature`` in place.

        Parameters
        ----------
        feature : Feature
            Candidate with trial monoisotopic ``mz`` and non-zero ``charge``.
        peaks : Sequence[Peak]
            Nearby peaks sorted ascending by m/z.

        Returns
        -------
        float
            Sum-of-squares distance to the model (lower is better).
        """
        max_resampled_distance = self.max_abs_distance_between_peaks / (self.resolution - 1)

        abs_charge = abs(feature.charge)
        inv_abs_charge = 1.0 / abs_charge
        if feature.charge >= 0:
            mass = (feature.mz - HYDROGEN_ION_MASS) * abs_charge
        else:
            mass = feature.mz * abs_charge

        peptide_peaks: List[Optional[Peak]] = [None] * self.max_peaks_per_feature

        p = bisect.bisect_left([peak.mz for peak in peaks], feature.mz)
        p = max(0, p - 1)
        p_last_found = p

        mz_p0 = feature.mz
        intensity_last = 0.0
        intensity_highest = 0.0
        skipped_peak = False
        dist_sum = 0.0
        dist_count = 0

        for pi in range(self.max_peaks_per_feature):
            mz_pi = mz_p0 + pi * inv_abs_charge + (dist_sum / dist_count if dist_count > 0 else 0.0)
            p = find_closest_peak(peaks, mz_pi, p)
            peak_found = peaks[p]
            dist = abs(peak_found.mz - mz_pi)

            found = not peak_found.excluded and dist < 2.5 * max_resampled_distance

            if not found:
                # two misses in a row end the walk
                if pi > 0 and peptide_peaks[pi - 1] is None:
                    break
                continue

            intensity_highest = max(peak_found.intensity, intensity_highest)

            # an isotope far bigger than its predecessor belongs to something else
            if (pi > 2 and peak_found.intensity != intensity_highest
                    and peak_found.intensity > intensity_last * 1.33 + feature.median):
                break

            if peak_found.intensity > intensity_highest / 2:
                dist_sum += dist
                dist_count += 1

            for s in range(p_last_found + 1, p):
                if peaks[s].intensity > intensity_last / 2 + feature.median:
                    skipped_peak = True

            peptide_peaks[pi] = peak_found
            p_last_found = p
            intensity_last = peak_found.intensity

        mean = 0.0
        weight = 0.0
        for i, peak in enumerate(peptide_peaks):
            if peak is None:
                continue
            mean += (peak.mz - i * inv_abs_charge) * peak.intensity
            weight += peak.intensity
        if weight > 0:
            feature.mz = mean / weight

        # Missing peaks count as 0.1 before scaling to sum 1
        signal = np.zeros(min(N_ISOTOPES, self.max_peaks_per_feature), dtype=np.float64)
        count_peaks = 0
        for i, peak in enumerate(peptide_peaks):
            if peak is not None and (peak.intensity > intensity_highest / 50
                                     and peak.intensity > 2 * feature.median):
                count_peaks += 1
            if i < len(signal):
                signal[i] = max(0.1, 0.0 if peak is None else peak.intensity)
        signal /= signal.sum()

        feature.kl = kl_poisson_distance(mass, signal)
        feature.peaks = count_peaks
        feature.skipped_peaks = skipped_peak
        feature.comprised = peptide_peaks
        feature.mz_peak0 = peptide_peaks[0].mz if peptide_peaks[0] is not None else mz_p0

        return self.sum_squares_distance_2d(feature, signal, peptide_peaks)

    def sum_squares_distance_2d(
        self,
        feature: Feature,
        scaled_intensities: np.ndarray,
        peptide_peaks: Sequence[Optional[Peak]],
    ) -> float:
        """Weighted squared distance in (m/z, scaled intensity) to the model.

        Only present peaks contribute, each weighted by its expected
        relative intensity. The m/z error is reduced by half a grid step to
        discount resampling error.
        """
        if feature.charge >= 0:
            mass = (feature.mz - HYDROGEN_ION_MASS) * feature.charge
        else:
            mass = feature.mz * -feature.charge
        expected = poisson_distribution(mass)

        last_peak = 0
        for i in range(len(scaled_intensities)):
            if peptide_peaks[i] is not None:
                last_peak = i
        last_peak = min(last_peak, len(expected) - 1)

        abs_charge = abs(feature.charge)
        half_step = 1.0 / (2 * self.resolution)
        sum_dist = 0.0
        for i in range(last_peak + 1):
            peak = peptide_peaks[i]
            if peak is None:
                continue
            theoretical_mz = feature.mz + i / abs_charge
            dist_mz = max(0.0, abs(peak.mz - theoretical_mz) - half_step)
            dist_in = abs(scaled_intensities[i] - expected[i])

            dist_mz *= SUMSQUARES_MZ_WEIGHT
            dist_in *= SUMSQUARES_SCALED_INTENSITY_WEIGHT
            sum_dist += (dist_mz * dist_mz + dist_in * dist_in) * expected[i]

        return float(sum_dist)
