"""
Discrete and maximal-overlap wavelet transforms.

Forward/inverse DWT pyramid steps, forward/inverse MODWT steps, and the
multi-level ``decompose`` / ``multiresolution`` drivers. All kernels assume
periodic boundaries; the reflection boundary is handled by mirror-extending
the signal to ``2N`` before the first level.

Accumulation is always float64. Float32 inputs are narrowed back to
float32 once, on output.

Example:
    >>> filt = get_filter("la8")
    >>> rows = decompose(x, 4, filt, method="modwt", boundary="periodic")
    >>> mra = multiresolution(rows, len(x), 4, filt, "modwt", "periodic")
    >>> np.allclose(np.sum(mra, axis=0), x)
    True
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from numba import njit

from alphawave.constants import BOUNDARY_MODES, INV_SQRT_2, TRANSFORM_METHODS
from alphawave.errors import InvalidArgumentError, UnsupportedFilterError
from alphawave.wavelet.filters import Filter, available_filters, get_filter


@dataclass
class WaveletParams:
    """Configuration of a wavelet decomposition.

    Attributes:
        filter_name: One of the filter bank names
        decomposition_levels: Number of detail levels K (>= 1)
        method: 'dwt' or 'modwt'
        boundary: None, 'periodic' or 'reflection'
    """

    filter_name: str = "la8"
    decomposition_levels: int = 4
    method: str = "modwt"
    boundary: Optional[str] = "periodic"

    def __post_init__(self):
        if self.filter_name not in available_filters():
            raise UnsupportedFilterError(f"Unsupported wavelet filter: {self.filter_name!r}")
        _validate_options(self.decomposition_levels, self.method, self.boundary)

    @property
    def filter(self) -> Filter:
        return get_filter(self.filter_name)


# =============================================================================
# Numba kernels
# =============================================================================

@njit(nogil=True)
def wrap(i: int, n: int) -> int:
    """Circular index into a buffer of length n."""
    return i % n


@njit(nogil=True)
def _dwt_kernel(v_in, m, h, g):
    half = m // 2
    n_taps = h.shape[0]
    w_out = np.zeros(half, dtype=np.float64)
    v_out = np.zeros(half, dtype=np.float64)

    for t in range(half):
        k = 2 * t + 1
        w_sum = 0.0
        v_sum = 0.0
        for l in range(n_taps):
            w_sum += h[l] * v_in[k]
            v_sum += g[l] * v_in[k]
            k = wrap(k - 1, m)
        w_out[t] = w_sum
        v_out[t] = v_sum

    return w_out, v_out


@njit(nogil=True)
def _idwt_kernel(w_in, v_in, m, h, g):
    n_taps = h.shape[0]
    x_out = np.zeros(2 * m, dtype=np.float64)

    for t in range(m):
        u = t
        i = 1
        j = 0
        even = 0.0
        odd = 0.0
        for _ in range(n_taps // 2):
            even += h[i] * w_in[u] + g[i] * v_in[u]
            odd += h[j] * w_in[u] + g[j] * v_in[u]
            u = wrap(u + 1, m)
            i += 2
            j += 2
        x_out[2 * t] = even
        x_out[2 * t + 1] = odd

    return x_out


@njit(nogil=True)
def _modwt_kernel(v_in, level, h, g):
    n = v_in.shape[0]
    n_taps = h.shape[0]
    step = 1 << (level - 1)
    w_out = np.zeros(n, dtype=np.float64)
    v_out = np.zeros(n, dtype=np.float64)

    for t in range(n):
        j = t
        w_sum = 0.0
        v_sum = 0.0
        for l in range(n_taps):
            w_sum += h[l] * INV_SQRT_2 * v_in[j]
            v_sum += g[l] * INV_SQRT_2 * v_in[j]
            j = wrap(j - step, n)
        w_out[t] = w_sum
        v_out[t] = v_sum

    return w_out, v_out


@njit(nogil=True)
def _imodwt_kernel(w_in, v_in, level, h, g):
    n = v_in.shape[0]
    n_taps = h.shape[0]
    step = 1 << (level - 1)
    v_out = np.zeros(n, dtype=np.float64)

    for t in range(n):
        j = t
        acc = 0.0
        for l in range(n_taps):
            acc += h[l] * INV_SQRT_2 * w_in[j] + g[l] * INV_SQRT_2 * v_in[j]
            j = wrap(j + step, n)
        v_out[t] = acc

    return v_out


# =============================================================================
# Single-step transforms
# =============================================================================

def _as_float64(x) -> np.ndarray:
    return np.ascontiguousarray(x, dtype=np.float64)


def _output_dtype(x) -> np.dtype:
    dtype = np.asarray(x).dtype
    return dtype if dtype in (np.float32, np.float64) else np.dtype(np.float64)


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def dwt(v_in: np.ndarray, filt: Filter) -> Tuple[np.ndarray, np.ndarray]:
    """One pyramid step of the discrete wavelet transform.

    Args:
        v_in: Smooth (or signal) vector of even length M
        filt: Wavelet filter

    Returns:
        Tuple of (detail W, smooth V), each of length M/2
    """
    m = len(v_in)
    if m == 0 or m % 2 != 0:
        raise InvalidArgumentError(f"DWT step needs an even, non-empty length, got {m}")
    dtype = _output_dtype(v_in)
    w, v = _dwt_kernel(_as_float64(v_in), m, filt.h, filt.g)
    return w.astype(dtype, copy=False), v.astype(dtype, copy=False)


def idwt(w_in: np.ndarray, v_in: np.ndarray, filt: Filter, m: Optional[int] = None) -> np.ndarray:
    """Inverse pyramid step reconstructing ``2 * m`` samples.

    Only the first ``m`` entries of ``w_in`` and ``v_in`` are read
    (default: all of them).
    """
    if m is None:
        m = len(w_in)
    if len(w_in) < m or len(v_in) < m:
        raise InvalidArgumentError(
            f"IDWT step needs {m} coefficients, got {len(w_in)} details and {len(v_in)} smooths"
        )
    dtype = _output_dtype(v_in)
    x = _idwt_kernel(_as_float64(w_in), _as_float64(v_in), m, filt.h, filt.g)
    return x.astype(dtype, copy=False)


def modwt(v_in: np.ndarray, level: int, filt: Filter) -> Tuple[np.ndarray, np.ndarray]:
    """One MODWT step at decomposition level ``level`` (>= 1).

    Taps are scaled by 1/sqrt(2) and walked backwards with step
    ``2**(level - 1)``. Output length equals input length.
    """
    if level < 1:
        raise InvalidArgumentError(f"MODWT level must be >= 1, got {level}")
    if len(v_in) == 0:
        raise InvalidArgumentError("MODWT step needs a non-empty signal")
    dtype = _output_dtype(v_in)
    w, v = _modwt_kernel(_as_float64(v_in), level, filt.h, filt.g)
    return w.astype(dtype, copy=False), v.astype(dtype, copy=False)


def imodwt(w_in: np.ndarray, v_in: np.ndarray, level: int, filt: Filter) -> np.ndarray:
    """Inverse MODWT step; the index walks forward by ``2**(level - 1)``."""
    if level < 1:
        raise InvalidArgumentError(f"MODWT level must be >= 1, got {level}")
    if len(w_in) != len(v_in):
        raise InvalidArgumentError(
            f"Detail and smooth lengths differ: {len(w_in)} != {len(v_in)}"
        )
    dtype = _output_dtype(v_in)
    v = _imodwt_kernel(_as_float64(w_in), _as_float64(v_in), level, filt.h, filt.g)
    return v.astype(dtype, copy=False)


def reflect_vector(x: np.ndarray) -> np.ndarray:
    """Mirror-extend ``x`` to ``2N``: the signal followed by its reverse."""
    x = np.asarray(x)
    return np.concatenate([x, x[::-1]])


# =============================================================================
# Multi-level drivers
# =============================================================================

def _validate_options(n_levels: int, method: str, boundary: Optional[str]) -> None:
    if method not in TRANSFORM_METHODS:
        raise InvalidArgumentError(
            f"Unknown transform method: {method!r} (expected one of {TRANSFORM_METHODS})"
        )
    if boundary is not None and boundary not in BOUNDARY_MODES:
        raise InvalidArgumentError(
            f"Unknown boundary: {boundary!r} (expected None or one of {BOUNDARY_MODES})"
        )
    if n_levels < 1:
        raise InvalidArgumentError(f"Number of decomposition levels must be >= 1, got {n_levels}")


def _working_length(n: int, boundary: Optional[str]) -> int:
    return 2 * n if boundary == "reflection" else n


def _check_dyadic(n: int, n_levels: int, boundary: Optional[str]) -> None:
    if not _is_power_of_two(n):
        raise InvalidArgumentError(f"DWT requires a power-of-two length, got {n}")
    length = _working_length(n, boundary)
    if (length >> n_levels) < 1:
        raise InvalidArgumentError(
            f"{n_levels} DWT levels exceed the available halvings of length {length}"
        )


def decompose(
    x: np.ndarray,
    n_levels: int,
    filt: Filter,
    method: str = "modwt",
    boundary: Optional[str] = "periodic",
) -> List[np.ndarray]:
    """Multi-level wavelet decomposition.

    Each level transforms the previous level's smooth. For 'dwt' the
    working length halves per level; for 'modwt' it stays at N (2N under
    reflection).

    Args:
        x: Signal of length N (dyadic N required for 'dwt')
        n_levels: Number of detail levels K
        filt: Wavelet filter
        method: 'dwt' or 'modwt'
        boundary: None / 'periodic' (same thing) or 'reflection'

    Returns:
        K detail vectors followed by the level-K smooth
    """
    _validate_options(n_levels, method, boundary)
    n = len(x)
    if n == 0:
        raise InvalidArgumentError("Cannot decompose an empty signal")

    if method == "dwt":
        _check_dyadic(n, n_levels, boundary)

    dtype = _output_dtype(x)
    v_in = _as_float64(reflect_vector(x) if boundary == "reflection" else x)

    rows = []
    for level in range(1, n_levels + 1):
        if method == "dwt":
            w, v_in = _dwt_kernel(v_in, v_in.shape[0], filt.h, filt.g)
        else:
            w, v_in = _modwt_kernel(v_in, level, filt.h, filt.g)
        rows.append(w)
    rows.append(v_in)

    return [row.astype(dtype, copy=False) for row in rows]


def multiresolution(
    decomposition: List[np.ndarray],
    n: int,
    n_levels: int,
    filt: Filter,
    method: str = "modwt",
    boundary: Optional[str] = "periodic",
) -> List[np.ndarray]:
    """Additive multiresolution analysis from a decomposition.

    Row ``k`` is the contribution of detail level ``k + 1`` in the signal
    domain (that level's coefficients inverted with zero smooths, then
    inverted down through the remaining levels with zero details); the last
    row is the contribution of the final smooth. The rows sum to the
    signal, or to its mirror extension under reflection.

    Args:
        decomposition: Output of :func:`decompose`
        n: Original signal length N
        n_levels: Number of detail levels K
        filt: Wavelet filter
        method: Method used by :func:`decompose`
        boundary: Boundary used by :func:`decompose`

    Returns:
        K + 1 rows, each of the working length (N, or 2N under reflection)
    """
    _validate_options(n_levels, method, boundary)
    if len(decomposition) != n_levels + 1:
        raise InvalidArgumentError(
            f"Expected {n_levels + 1} decomposition rows, got {len(decomposition)}"
        )

    if method == "dwt":
        _check_dyadic(n, n_levels, boundary)
    elif n < 1:
        raise InvalidArgumentError(f"Signal length must be >= 1, got {n}")

    length = _working_length(n, boundary)
    for k, row in enumerate(decomposition):
        # dwt rows halve per level, the smooth matches the last detail
        expected = length >> min(k + 1, n_levels) if method == "dwt" else length
        if len(row) != expected:
            raise InvalidArgumentError(
                f"Decomposition row {k} has length {len(row)}, expected {expected}"
            )

    dtype = _output_dtype(decomposition[0])
    zeros = np.zeros(length, dtype=np.float64)

    def _inverse(w, v, level):
        if method == "dwt":
            return _idwt_kernel(w, v, length >> level, filt.h, filt.g)
        return _imodwt_kernel(w, v, level, filt.h, filt.g)

    mra = []
    for k in range(1, n_levels + 2):
        if k <= n_levels:
            out = _inverse(_as_float64(decomposition[k - 1]), zeros, k)
        else:
            out = _inverse(zeros, _as_float64(decomposition[n_levels]), n_levels)
        for level in range(min(k, n_levels) - 1, 0, -1):
            out = _inverse(zeros, out, level)
        mra.append(out.astype(dtype, copy=False))

    return mra


# =============================================================================
# Convenience drivers
# =============================================================================

def wavelet_dx(x: np.ndarray, level: int) -> np.ndarray:
    """Signal-domain detail at ``level`` (MODWT, Haar, periodic)."""
    haar = get_filter("haar")
    rows = decompose(x, level, haar, "modwt", "periodic")
    mra = multiresolution(rows, len(x), level, haar, "modwt", "periodic")
    return mra[level - 1]


def wavelet_d3(x: np.ndarray) -> np.ndarray:
    return wavelet_dx(x, 3)


def pad_to_double(x: np.ndarray, pad: int) -> np.ndarray:
    """Pad both ends so the signal wraps around smoothly.

    The left pad ramps from the mid value of the two end samples down
    towards ``x[0]``; the right pad ramps from ``x[-1]`` back to the mid
    value, so the periodic extension has no jump.
    """
    x = np.asarray(x, dtype=np.float64)
    n = len(x)
    out = np.empty(n + 2 * pad, dtype=np.float64)
    out[pad:pad + n] = x
    if pad == 0 or n == 0:
        return out

    first = x[0]
    last = x[n - 1]
    middle = (first + last) / 2.0
    step = (last - first) / (2.0 * pad)
    ramp = np.arange(pad, dtype=np.float64) * step
    out[:pad] = middle - ramp
    out[pad + n:] = (middle + ramp)[::-1]
    return out


def unpad(x: np.ndarray, pad: int) -> np.ndarray:
    """Drop ``pad`` samples from both ends."""
    return np.asarray(x)[pad:len(x) - pad].copy()


def wavelet_filter(
    x: np.ndarray,
    n_levels: int,
    n_keep: int,
    filt: Optional[Filter] = None,
) -> np.ndarray:
    """Reconstruct ``x`` from its last ``n_keep`` detail levels.

    The signal is padded by ``2**n_levels`` at both ends, decomposed with a
    MODWT multiresolution, and levels ``n_levels - n_keep .. n_levels - 1``
    are summed. The smooth is dropped, which removes slowly varying
    background.
    """
    if not 1 <= n_keep <= n_levels:
        raise InvalidArgumentError(f"n_keep must be in [1, {n_levels}], got {n_keep}")
    if filt is None:
        filt = get_filter("haar")

    pad = 1 << n_levels
    padded = pad_to_double(x, pad)
    rows = decompose(padded, n_levels, filt, "modwt", "periodic")
    mra = multiresolution(rows, len(padded), n_levels, filt, "modwt", "periodic")
    summed = np.sum(mra[n_levels - n_keep:n_levels], axis=0)
    return unpad(summed, pad).astype(_output_dtype(x), copy=False)
