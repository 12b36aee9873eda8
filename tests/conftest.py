"""Pytest configuration for alphawave tests.

This module provides common fixtures and synthetic spectra for all tests.
Everything is computed in memory; no raw files are needed.
"""

import numpy as np
import pytest

from alphawave.constants import HYDROGEN_ION_MASS
from alphawave.features.isotopes import poisson_distribution


def _isotope_profile(
    mono_mz,
    charge,
    total_intensity=1e5,
    mz_range=(595.0, 610.0),
    sigma=0.03,
    step=0.005,
    n_isotopes=6,
):
    """Raw profile samples of one isotope envelope with Poisson intensities.

    Returns:
        Tuple of (mz, intensity) arrays sampled every ``step`` Th
    """
    mz = np.arange(mz_range[0], mz_range[1], step)
    intensity = np.zeros_like(mz)
    mass = (mono_mz - HYDROGEN_ION_MASS) * charge
    for i, rel in enumerate(poisson_distribution(mass)[:n_isotopes]):
        center = mono_mz + i / charge
        intensity += total_intensity * rel * np.exp(-0.5 * ((mz - center) / sigma) ** 2)
    return mz, intensity


def _gaussian_peaks(n, centers, amplitude=1000.0, sigma=3.0):
    """Sum of Gaussians on an index grid of length ``n``."""
    idx = np.arange(n, dtype=np.float64)
    x = np.zeros(n, dtype=np.float64)
    for c in centers:
        x += amplitude * np.exp(-0.5 * ((idx - c) / sigma) ** 2)
    return x


@pytest.fixture
def random_signal():
    """Dyadic-length random signal."""
    return np.random.normal(size=64)


@pytest.fixture
def odd_length_signal():
    """Non-dyadic random signal (MODWT only)."""
    return np.random.normal(size=100)


@pytest.fixture
def peptide_profile():
    """2+ peptide at m/z 600.3 in a 595-610 window."""
    return _isotope_profile(600.3, 2)


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)


@pytest.fixture
def make_isotope_profile():
    """Factory for raw isotope-envelope profiles."""
    return _isotope_profile


@pytest.fixture
def make_gaussian_peaks():
    """Factory for Gaussian peaks on an index grid."""
    return _gaussian_peaks
