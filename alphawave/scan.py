"""Scan access protocol consumed by the extraction and calibration pipelines."""

from dataclasses import dataclass
from typing import Protocol, Tuple

import numpy as np

from alphawave.errors import InvalidArgumentError


class ScanLike(Protocol):
    """Anything that can hand out one scan's raw profile samples."""

    def get_spectrum(self) -> Tuple[np.ndarray, np.ndarray]:
        ...

    def get_retention_time(self) -> float:
        ...

    def get_scan_number(self) -> int:
        ...


@dataclass
class SpectrumScan:
    """In-memory scan over numpy arrays.

    Attributes:
        mz: Sample m/z values, ascending
        intensity: Sample intensities
        retention_time: Retention time in seconds
        scan_number: Scan number within the run
    """

    mz: np.ndarray
    intensity: np.ndarray
    retention_time: float = 0.0
    scan_number: int = 0

    def __post_init__(self):
        self.mz = np.asarray(self.mz, dtype=np.float64)
        self.intensity = np.asarray(self.intensity, dtype=np.float64)
        if self.mz.shape != self.intensity.shape:
            raise InvalidArgumentError(
                f"mz and intensity arrays differ in shape: {self.mz.shape} != {self.intensity.shape}"
            )

    def get_spectrum(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.mz, self.intensity

    def get_retention_time(self) -> float:
        return self.retention_time

    def get_scan_number(self) -> int:
        return self.scan_number
