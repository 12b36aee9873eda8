"""alphawave - Wavelet signal processing for MS1 profile spectra.

Numba-optimized wavelet transforms (DWT/MODWT, multiresolution analysis,
thresholding), per-scan peak extraction and isotope feature detection, and
lock-mass calibration of feature m/z values along a run.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from alphawave import wavelet
from alphawave import spectrum
from alphawave import features
from alphawave import calibration
from alphawave.errors import InvalidArgumentError, NoCalibrationDataError, UnsupportedFilterError
from alphawave.scan import ScanLike, SpectrumScan
from alphawave.sink import FeatureSink, ListFeatureSink, TsvFeatureSink

__all__ = [
    "wavelet",
    "spectrum",
    "features",
    "calibration",
    # Errors
    "InvalidArgumentError",
    "NoCalibrationDataError",
    "UnsupportedFilterError",
    # Interfaces
    "ScanLike",
    "SpectrumScan",
    "FeatureSink",
    "ListFeatureSink",
    "TsvFeatureSink",
]
