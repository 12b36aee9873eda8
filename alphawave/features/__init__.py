"""Feature detection from picked peaks.

This module provides:
- Feature record with mz <-> mass conversion
- Poisson isotope model and KL divergence
- Isotope pattern scoring and peak combination into charge-resolved features
- The per-scan extraction pipeline and its threaded multi-scan driver
"""

from .combining import PeakCombiner, determine_best_feature, distance_nearest_fraction
from .extraction import (
    FeatureExtractionParams,
    extract_features,
    extract_features_from_scans,
    extract_peaks,
    map_scans,
)
from .feature import Feature, convert_mass_to_mz, convert_mz_to_mass
from .isotopes import kl_poisson_distance, poisson_distribution
from .scoring import FeatureScorer, find_closest_peak

__all__ = [
    # Data types
    'Feature',
    'convert_mass_to_mz',
    'convert_mz_to_mass',
    # Isotope model
    'kl_poisson_distance',
    'poisson_distribution',
    # Scoring / combination
    'FeatureScorer',
    'PeakCombiner',
    'determine_best_feature',
    'distance_nearest_fraction',
    'find_closest_peak',
    # Pipeline
    'FeatureExtractionParams',
    'extract_features',
    'extract_features_from_scans',
    'extract_peaks',
    'map_scans',
]
