"""Feature sinks: where extracted (and calibrated) features are written."""

import csv
import logging
from typing import Iterable, List, Protocol, TextIO

from alphawave.features.feature import Feature

logger = logging.getLogger(__name__)

FEATURE_COLUMNS = (
    "scan",
    "time",
    "mz",
    "mass",
    "intensity",
    "charge",
    "kl",
    "background",
    "median",
    "peaks",
    "scanFirst",
    "scanLast",
    "scanCount",
    "totalIntensity",
    "sumSquaresDist",
)


class FeatureSink(Protocol):
    """Consumer of features."""

    def write(self, feature: Feature) -> None:
        ...

    def write_all(self, features: Iterable[Feature]) -> None:
        ...


class ListFeatureSink:
    """Collects features in memory."""

    def __init__(self):
        self.features: List[Feature] = []

    def write(self, feature: Feature) -> None:
        self.features.append(feature)

    def write_all(self, features: Iterable[Feature]) -> None:
        self.features.extend(features)

    def __len__(self) -> int:
        return len(self.features)


def feature_row(feature: Feature) -> list:
    """One feature as a row matching ``FEATURE_COLUMNS``."""
    return [
        feature.scan,
        f"{feature.time:.4f}",
        f"{feature.mz:.4f}",
        f"{feature.mass:.4f}",
        f"{feature.intensity:.2f}",
        feature.charge,
        f"{feature.kl:.4f}",
        f"{feature.background:.2f}",
        f"{feature.median:.2f}",
        feature.peaks,
        feature.scan_first,
        feature.scan_last,
        feature.scan_count,
        f"{feature.total_intensity:.2f}",
        f"{feature.dist:.4f}",
    ]


class TsvFeatureSink:
    """Writes features as tab-separated rows to a text stream.

    The header row is written before the first feature.

    Args:
        stream: Open text stream (e.g. ``open(path, 'w', newline='')``)
        write_header: Emit the column header row
    """

    def __init__(self, stream: TextIO, write_header: bool = True):
        self._writer = csv.writer(stream, delimiter="\t", lineterminator="\n")
        self._header_pending = write_header
        self.n_written = 0

    def _ensure_header(self) -> None:
        if self._header_pending:
            self._writer.writerow(FEATURE_COLUMNS)
            self._header_pending = False

    def write(self, feature: Feature) -> None:
        self._ensure_header()
        self._writer.writerow(feature_row(feature))
        self.n_written += 1

    def write_all(self, features: Iterable[Feature]) -> None:
        self._ensure_header()
        for feature in features:
            self._writer.writerow(feature_row(feature))
            self.n_written += 1
        logger.debug(f"Wrote {self.n_written:,} features")
