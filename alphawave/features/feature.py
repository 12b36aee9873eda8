"""Charge-resolved isotopic feature record and mz <-> mass conversion."""

import dataclasses
from dataclasses import dataclass, field
from typing import List, Optional

from alphawave.constants import HYDROGEN_ION_MASS
from alphawave.spectrum.peaks import Peak


def convert_mz_to_mass(mz: float, charge: int) -> float:
    """Neutral mass of an ion.

    Positive charge: ``(mz - H+) * z``. Negative charge assumes [M-H]
    ions: ``(mz + H+) * |z|``. Zero charge has no defined mass (0).
    Results are clamped at 0.
    """
    if charge > 0:
        return max(0.0, (mz - HYDROGEN_ION_MASS) * charge)
    if charge == 0:
        return 0.0
    return max(0.0, (mz + HYDROGEN_ION_MASS) * -charge)


def convert_mass_to_mz(mass: float, charge: int) -> float:
    """Inverse of :func:`convert_mz_to_mass` for positive charges; ``mass / |z|`` otherwise."""
    if charge > 0:
        return max(0.0, mass / charge + HYDROGEN_ION_MASS)
    if charge == 0:
        return 0.0
    return max(0.0, mass / -charge)


@dataclass(eq=False)
class Feature:
    """Detected isotope cluster of one ion species in one scan.

    ``mz`` is the intensity-weighted monoisotopic m/z; ``mass`` is derived
    from ``mz`` and ``charge`` by :meth:`update_mass`. ``comprised`` holds
    the peaks assigned to isotope positions 0..n (None for gaps).
    """

    mz: float
    intensity: float
    scan: int = -1
    charge: int = 0
    scan_first: int = -1
    scan_last: int = -1
    scan_count: int = 1
    total_intensity: float = 0.0
    time: float = 0.0
    kl: float = -1.0
    dist: float = -1.0
    peaks: int = 1
    skipped_peaks: bool = False
    mz_peak0: float = 0.0
    background: float = 0.0
    median: float = 0.0
    comprised: List[Optional[Peak]] = field(default_factory=list)
    mass: float = 0.0

    @classmethod
    def from_peak(cls, peak: Peak, mz: Optional[float] = None, charge: int = 0) -> 'Feature':
        """Start a feature at ``peak`` with a trial monoisotopic ``mz`` and charge."""
        return cls(
            mz=peak.mz if mz is None else mz,
            intensity=peak.intensity,
            scan=peak.scan,
            charge=charge,
            scan_first=peak.scan,
            scan_last=peak.scan,
            scan_count=1,
            total_intensity=peak.intensity,
            kl=0.0,
            background=peak.background,
            median=peak.median,
        )

    def update_mass(self) -> None:
        self.mass = convert_mz_to_mass(self.mz, self.charge)

    def contains_peak(self, peak: Peak) -> bool:
        """Identity check against the comprised peaks."""
        return peak is not None and any(p is peak for p in self.comprised)

    def with_mz(self, mz: float) -> 'Feature':
        """Copy of this feature at a corrected ``mz`` (mass recomputed)."""
        corrected = dataclasses.replace(self, mz=mz, comprised=list(self.comprised))
        corrected.update_mass()
        return corrected
