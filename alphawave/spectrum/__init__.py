"""Single-spectrum signal processing.

This module provides:
- Resampling of profile (mz, intensity) samples onto a uniform grid
- Moving-minimum baseline removal and moving-median noise estimation
- 1-2-1 and Gaussian FFT smoothing
- Wavelet-based peak picking
"""

from .background import interpolate, median_window, minima_window, remove_background
from .peaks import (
    Peak,
    find_minima_indexes,
    pick_peak_indexes,
    pick_peaks,
    wavelet_peaks,
    wavelet_peaks_d3,
)
from .resampling import grid_size, resample, resample_spectrum
from .smoothing import fft_smooth, gaussian_profile, smooth_a_little

__all__ = [
    # Resampling
    'grid_size',
    'resample',
    'resample_spectrum',
    # Background
    'interpolate',
    'median_window',
    'minima_window',
    'remove_background',
    # Smoothing
    'fft_smooth',
    'gaussian_profile',
    'smooth_a_little',
    # Peaks
    'Peak',
    'find_minima_indexes',
    'pick_peak_indexes',
    'pick_peaks',
    'wavelet_peaks',
    'wavelet_peaks_d3',
]
