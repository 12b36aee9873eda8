"""Exception types raised by alphawave.

All argument problems derive from ``ValueError`` so callers that already
catch ``ValueError`` keep working.
"""


class InvalidArgumentError(ValueError):
    """Unknown method/boundary, non-dyadic DWT length, mismatched arrays or bad parameters."""


class UnsupportedFilterError(InvalidArgumentError):
    """Requested wavelet filter name is not in the filter bank."""


class NoCalibrationDataError(RuntimeError):
    """No usable lock-mass feature was found in any calibration scan.

    The uncorrected feature set stays valid when this is raised.
    """
