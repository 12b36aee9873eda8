"""Wavelet engine: filter bank, DWT/MODWT transforms and thresholding.

This module provides:
- Named wavelet filters (Haar, Daubechies, least asymmetric)
- Forward/inverse DWT and MODWT steps with periodic or reflection boundaries
- Multi-level decomposition and additive multiresolution analysis
- Hard, soft and smooth coefficient thresholding
"""

from .filters import (
    Filter,
    available_filters,
    derive_haar_block,
    get_filter,
)
from .threshold import (
    soft_threshold,
    threshold_hard,
    threshold_smooth,
    threshold_soft,
)
from .transform import (
    WaveletParams,
    decompose,
    dwt,
    idwt,
    imodwt,
    modwt,
    multiresolution,
    pad_to_double,
    reflect_vector,
    unpad,
    wavelet_d3,
    wavelet_dx,
    wavelet_filter,
    wrap,
)

__all__ = [
    # Filters
    'Filter',
    'available_filters',
    'derive_haar_block',
    'get_filter',
    # Transforms
    'WaveletParams',
    'decompose',
    'dwt',
    'idwt',
    'imodwt',
    'modwt',
    'multiresolution',
    'pad_to_double',
    'reflect_vector',
    'unpad',
    'wavelet_d3',
    'wavelet_dx',
    'wavelet_filter',
    'wrap',
    # Thresholding
    'soft_threshold',
    'threshold_hard',
    'threshold_smooth',
    'threshold_soft',
]
