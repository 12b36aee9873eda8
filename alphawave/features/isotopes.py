"""
Poisson isotope model for peptide features.

The relative isotope intensities of a peptide of mass M are approximated
by a Poisson distribution with lambda = M / 1800 Da, truncated to the
first 6 peaks and renormalized. The table is precomputed in 10 Da buckets
up to 6400 Da.
"""

import math

import numpy as np
from numba import njit

N_ISOTOPES = 6
N_MASS_BUCKETS = 640
MASS_BUCKET_WIDTH = 10
POISSON_LAMBDA_PER_DA = 0.0005556  # ~1/1800


def _build_poisson_table() -> np.ndarray:
    table = np.zeros((N_MASS_BUCKETS, N_ISOTOPES), dtype=np.float64)
    for i in range(N_MASS_BUCKETS):
        mass = i * MASS_BUCKET_WIDTH + MASS_BUCKET_WIDTH / 2
        mu = mass * POISSON_LAMBDA_PER_DA
        for k in range(N_ISOTOPES):
            table[i, k] = mu ** k * math.exp(-mu) / math.factorial(k)
        table[i] /= table[i].sum()
    return table


POISSON_TABLE = _build_poisson_table()
POISSON_TABLE.setflags(write=False)


@njit(nogil=True)
def _bucket_index(mass):
    index = int((int(mass) - 5) / 10)
    return max(0, min(N_MASS_BUCKETS - 1, index))


def poisson_distribution(mass: float) -> np.ndarray:
    """Expected relative intensities of the first 6 isotope peaks (sum 1)."""
    return POISSON_TABLE[_bucket_index(mass)]


@njit(nogil=True)
def _kl_divergence(p, q):
    total = 0.0
    for i in range(min(p.shape[0], q.shape[0])):
        if p[i] > 0:
            total += p[i] * np.log(p[i] / q[i])
    return total / np.log(2.0)


def kl_poisson_distance(mass: float, signal: np.ndarray) -> float:
    """Kullback-Leibler divergence (bits) of the Poisson model from ``signal``.

    Args:
        mass: Neutral mass used to look up the expected distribution
        signal: Observed relative isotope intensities, strictly positive

    Returns:
        KL divergence; lower means the observation fits the model better
    """
    return float(_kl_divergence(poisson_distribution(mass), np.asarray(signal, dtype=np.float64)))
