"""Lock-mass calibration of feature m/z values along a run."""

from .lockmass import (
    CalibrationObservation,
    LockmassCalibrator,
    LockmassParams,
    apply_lockmass_correction,
    collect_lockmass_observations,
    find_lockmass_feature,
    lockmass_corrections,
)

__all__ = [
    'CalibrationObservation',
    'LockmassCalibrator',
    'LockmassParams',
    'apply_lockmass_correction',
    'collect_lockmass_observations',
    'find_lockmass_feature',
    'lockmass_corrections',
]
