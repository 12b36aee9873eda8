"""Tests for feature sinks."""

import io

from alphawave import ListFeatureSink, TsvFeatureSink
from alphawave.features import Feature
from alphawave.sink import FEATURE_COLUMNS, feature_row


def _feature(scan=3, mz=600.3):
    feature = Feature(mz=mz, intensity=1234.5, scan=scan, charge=2, time=61.25, kl=0.02,
                      peaks=4, scan_first=scan, scan_last=scan, total_intensity=1234.5)
    feature.update_mass()
    return feature


class TestListFeatureSink:
    """Test the in-memory sink."""

    def test_collects(self):
        """Test single and bulk writes are kept in order."""
        sink = ListFeatureSink()
        a, b, c = _feature(1), _feature(2), _feature(3)

        sink.write(a)
        sink.write_all([b, c])

        assert len(sink) == 3
        assert sink.features == [a, b, c]


class TestTsvFeatureSink:
    """Test tab-separated output."""

    def test_header_and_rows(self):
        """Test the header comes first and each feature is one row."""
        stream = io.StringIO()
        sink = TsvFeatureSink(stream)

        sink.write_all([_feature(1), _feature(2, mz=700.1)])

        lines = stream.getvalue().splitlines()
        assert len(lines) == 3
        assert lines[0].split("\t") == list(FEATURE_COLUMNS)
        row = lines[2].split("\t")
        assert row[0] == "2"
        assert row[FEATURE_COLUMNS.index("mz")] == "700.1000"
        assert row[FEATURE_COLUMNS.index("charge")] == "2"
        assert sink.n_written == 2

    def test_header_once(self):
        """Test repeated writes do not repeat the header."""
        stream = io.StringIO()
        sink = TsvFeatureSink(stream)

        sink.write(_feature(1))
        sink.write(_feature(2))

        assert stream.getvalue().count("scanFirst") == 1

    def test_without_header(self):
        """Test header suppression."""
        stream = io.StringIO()
        TsvFeatureSink(stream, write_header=False).write(_feature())

        assert len(stream.getvalue().splitlines()) == 1

    def test_row_matches_columns(self):
        """Test every row has one value per column."""
        assert len(feature_row(_feature())) == len(FEATURE_COLUMNS)
