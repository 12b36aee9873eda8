"""
Wavelet filter bank.

Coefficient tables for the Haar, Daubechies (d4, d6, d8) and least
asymmetric (la8, la16) families. ``h`` holds the wavelet (high-pass)
coefficients and ``g`` the scaling (low-pass) coefficients. The quadrature
mirror relationship between ``h`` and ``g`` is not validated.
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from alphawave.errors import InvalidArgumentError, UnsupportedFilterError


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


_COEFFICIENTS: Dict[str, tuple] = {
    "haar": (
        [0.7071067811865475, -0.7071067811865475],
        [0.7071067811865475, 0.7071067811865475],
    ),
    "d4": (
        [-0.1294095225512603, -0.2241438680420134, 0.8365163037378077, -0.4829629131445341],
        [0.4829629131445341, 0.8365163037378077, 0.2241438680420134, -0.1294095225512603],
    ),
    "d6": (
        [0.0352262918857096, 0.0854412738820267, -0.1350110200102546,
         -0.4598775021184915, 0.8068915093110928, -0.3326705529500827],
        [0.3326705529500827, 0.8068915093110928, 0.4598775021184915,
         -0.1350110200102546, -0.0854412738820267, 0.0352262918857096],
    ),
    "d8": (
        [-0.0105974017850021, -0.0328830116666778, 0.0308413818353661, 0.1870348117179132,
         -0.0279837694166834, -0.6308807679358788, 0.7148465705484058, -0.2303778133074431],
        [0.2303778133074431, 0.7148465705484058, 0.6308807679358788, -0.0279837694166834,
         -0.1870348117179132, 0.0308413818353661, 0.0328830116666778, -0.0105974017850021],
    ),
    "la8": (
        [0.03222310060407815, 0.01260396726226383, -0.09921954357695636, -0.29785779560560505,
         0.80373875180538600, -0.49761866763256290, -0.02963552764596039, 0.07576571478935668],
        [-0.07576571478935668, -0.02963552764596039, 0.49761866763256290, 0.80373875180538600,
         0.29785779560560505, -0.09921954357695636, -0.01260396726226383, 0.03222310060407815],
    ),
    "la16": (
        [0.0018899503329007, 0.0003029205145516, -0.0149522583367926, -0.0038087520140601,
         0.0491371796734768, 0.0272190299168137, -0.0519458381078751, -0.3644418948359564,
         0.7771857516997478, -0.4813596512592012, -0.0612733590679088, 0.1432942383510542,
         0.0076074873252848, -0.0316950878103452, -0.0005421323316355, 0.0033824159513594],
        [-0.0033824159513594, -0.0005421323316355, 0.0316950878103452, 0.0076074873252848,
         -0.1432942383510542, -0.0612733590679088, 0.4813596512592012, 0.7771857516997478,
         0.3644418948359564, -0.0519458381078751, -0.0272190299168137, 0.0491371796734768,
         0.0038087520140601, -0.0149522583367926, -0.0003029205145516, 0.0018899503329007],
    ),
}


@dataclass(frozen=True, eq=False)
class Filter:
    """Immutable wavelet filter pair.

    Attributes:
        name: Filter family name (e.g. 'haar', 'la8')
        h: Wavelet (high-pass) coefficients, read-only float64
        g: Scaling (low-pass) coefficients, read-only float64
    """

    name: str
    h: np.ndarray
    g: np.ndarray

    @property
    def L(self) -> int:
        """Filter length."""
        return len(self.h)

    def convert_haar(self, scale: int) -> 'Filter':
        """Expand this Haar filter into a block filter of length ``L * scale``."""
        return derive_haar_block(scale, base=self)

    def __str__(self) -> str:
        h = "\n".join(f"  {c:.16f}" for c in self.h)
        g = "\n".join(f"  {c:.16f}" for c in self.g)
        return f"Filter {self.name} (L={self.L})\nh:\n{h}\ng:\n{g}"


def available_filters() -> List[str]:
    """Names accepted by :func:`get_filter`."""
    return list(_COEFFICIENTS)


def get_filter(name: str) -> Filter:
    """Look up a named wavelet filter.

    Args:
        name: One of 'haar', 'd4', 'd6', 'd8', 'la8', 'la16'

    Returns:
        Filter with read-only coefficient arrays

    Raises:
        UnsupportedFilterError: If the name is unknown
    """
    try:
        h, g = _COEFFICIENTS[name]
    except KeyError:
        raise UnsupportedFilterError(
            f"Unsupported wavelet filter: {name!r} (known: {', '.join(_COEFFICIENTS)})"
        ) from None
    return Filter(name=name, h=_readonly(h), g=_readonly(g))


def derive_haar_block(scale: int, base: Filter = None) -> Filter:
    """Block-differencing / block-averaging generalization of Haar.

    The first ``scale`` taps replicate ``h[0] / sqrt(scale)``, the next
    ``scale`` taps replicate ``h[1] / sqrt(scale)`` (same for ``g``), so the
    result keeps unit sum of squares.

    Args:
        scale: Block size, >= 1
        base: Haar filter to expand (default: the 'haar' table)

    Returns:
        Filter of length ``2 * scale``
    """
    if base is None:
        base = get_filter("haar")
    if not base.name.startswith("haar") or base.L != 2:
        raise InvalidArgumentError(f"Block expansion is only defined for Haar, got {base.name!r}")
    if scale < 1:
        raise InvalidArgumentError(f"scale must be >= 1, got {scale}")

    norm = np.sqrt(scale)
    h = np.empty(base.L * scale, dtype=np.float64)
    g = np.empty(base.L * scale, dtype=np.float64)
    h[:scale] = base.h[0] / norm
    h[scale:] = base.h[1] / norm
    g[:scale] = base.g[0] / norm
    g[scale:] = base.g[1] / norm
    h.setflags(write=False)
    g.setflags(write=False)
    return Filter(name=f"haar{scale}" if scale > 1 else "haar", h=h, g=g)
