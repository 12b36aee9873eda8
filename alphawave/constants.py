"""Physical constants and pipeline defaults for MS1 wavelet processing.

Key Features
------------
- HYDROGEN_ION_MASS (H atom minus electron) as used by feature mass calculations
- Resampling, background and peak-picking defaults shared by the
  extraction pipeline and the lock-mass calibration
"""

import sys

import numpy as np

# =============================================================================
# Physical Constants
# =============================================================================

# H+ as used for mz <-> mass conversion of features
# H atom minus electron, rounded the way feature masses have always been computed
HYDROGEN_ION_MASS = 1.0078250 - 5.485e-4  # Da

# =============================================================================
# Wavelet Engine
# =============================================================================

INV_SQRT_2 = 1.0 / np.sqrt(2.0)

# Threshold sentinel that zeroes a whole decomposition level
MAX_THRESHOLD = sys.float_info.max

TRANSFORM_METHODS = ("dwt", "modwt")
BOUNDARY_MODES = ("periodic", "reflection")

# =============================================================================
# Spectrum Processing Defaults
# =============================================================================

# Samples per Th on the resampled grid
DEFAULT_RESOLUTION = 36

# Moving-minimum baseline window (grid points, = 2 Th at 36/Th)
DEFAULT_BACKGROUND_WINDOW = 72

# Median noise window used to accept wavelet peaks
DEFAULT_MEDIAN_WINDOW = 72

# Gaussian FFT smoothing factor
DEFAULT_SMOOTH_FACTOR = 8.0

# D3 detail level threshold for peak picking
DEFAULT_PEAK_THRESHOLD = 0.5

# Peak must be this many times above max(1, local median)
DEFAULT_MIN_SIGNAL_TO_MEDIAN = 3.0

DEFAULT_MAX_CHARGE = 6

# Smallest positive (subnormal) float32
FLOAT32_MIN = 1.4e-45

# =============================================================================
# Lock-Mass Defaults
# =============================================================================

# Glu-fibrinopeptide B, 2+
DEFAULT_LOCKMASS_MZ = 785.8426
DEFAULT_LOCKMASS_CHARGE = 2
DEFAULT_LOCKMASS_WINDOW = 0.2  # Da
