"""Tests for the per-scan extraction pipeline on synthetic profile spectra."""

import numpy as np
import pytest

from alphawave import SpectrumScan
from alphawave.errors import InvalidArgumentError
from alphawave.features import (
    FeatureExtractionParams,
    extract_features,
    extract_features_from_scans,
    extract_peaks,
    map_scans,
)


@pytest.fixture
def params():
    return FeatureExtractionParams(mz_range=(595.0, 610.0))


class TestFeatureExtractionParams:
    """Test pipeline parameter validation and presets."""

    def test_defaults(self):
        """Test the default window and resolution."""
        params = FeatureExtractionParams()

        assert params.mz_range == (400.0, 1600.0)
        assert params.resolution == 36
        assert params.max_charge == 6

    def test_for_lockmass(self):
        """Test the calibrant window spans 1 Th below to 4 Th above."""
        params = FeatureExtractionParams.for_lockmass(785.8426, max_charge=3)

        assert params.mz_range[0] == pytest.approx(784.8426)
        assert params.mz_range[1] == pytest.approx(789.8426)
        assert params.max_charge == 3

    def test_invalid_range(self):
        """Test a reversed m/z range is refused."""
        with pytest.raises(InvalidArgumentError):
            FeatureExtractionParams(mz_range=(600.0, 500.0))

    def test_invalid_resolution(self):
        """Test resolution below 2 is refused."""
        with pytest.raises(InvalidArgumentError):
            FeatureExtractionParams(resolution=1)

    def test_make_combiner(self):
        """Test the combiner inherits charge settings."""
        combiner = FeatureExtractionParams(max_charge=4, negative_charge_mode=True).make_combiner()

        assert combiner.max_charge == 4
        assert combiner.negative_charge_mode


class TestExtractPeaks:
    """Test resampling to peak picking."""

    def test_isotope_peaks_found(self, peptide_profile, params):
        """Test peaks land near every major isotope of a 2+ envelope."""
        mz, intensity = peptide_profile

        peaks = extract_peaks(mz, intensity, params, scan_number=5)
        peak_mz = np.array([p.mz for p in peaks])

        for i in range(4):
            assert np.min(np.abs(peak_mz - (600.3 + i / 2))) < 0.03
        assert all(p.scan == 5 for p in peaks)
        assert np.all(np.diff(peak_mz) > 0)

    def test_flat_spectrum(self, params):
        """Test an empty spectrum has no peaks."""
        mz = np.arange(595.0, 610.0, 0.005)

        assert extract_peaks(mz, np.zeros_like(mz), params) == []


class TestExtractFeatures:
    """Test single and multi-scan feature extraction."""

    def test_charge_2_feature(self, peptide_profile, params):
        """Test the envelope becomes one 2+ feature at its monoisotopic m/z."""
        mz, intensity = peptide_profile
        scan = SpectrumScan(mz, intensity, retention_time=61.5, scan_number=12)

        features = extract_features(scan, params)

        assert len(features) >= 1
        feature = features[0]
        assert feature.charge == 2
        assert abs(feature.mz - 600.3) < 0.05
        assert feature.peaks >= 3
        assert feature.scan == 12
        assert feature.time == 61.5
        assert feature.mass == pytest.approx((feature.mz - 1.00727645) * 2, abs=1e-3)

    def test_multiple_scans_keep_order(self, make_isotope_profile, params):
        """Test threaded extraction returns features grouped in scan order."""
        scans = []
        for scan_number, mono in enumerate((598.2, 600.3, 603.7)):
            mz, intensity = make_isotope_profile(mono, 2)
            scans.append(SpectrumScan(mz, intensity, retention_time=float(scan_number),
                                      scan_number=scan_number))

        features = extract_features_from_scans(scans, params, n_threads=3)

        leading = []
        for f in features:
            if not leading or leading[-1].scan != f.scan:
                leading.append(f)
        assert [f.scan for f in leading] == [0, 1, 2]
        for f, mono in zip(leading, (598.2, 600.3, 603.7)):
            assert abs(f.mz - mono) < 0.05

    def test_no_scans(self):
        """Test an empty scan list gives no features."""
        assert extract_features_from_scans([]) == []


class TestMapScans:
    """Test the threaded per-scan driver."""

    def test_order_preserved(self):
        """Test results come back in input order with several threads."""
        assert map_scans(lambda x: x * 2, range(20), n_threads=4) == list(range(0, 40, 2))

    def test_serial(self):
        """Test n_threads=1 runs in the calling thread."""
        assert map_scans(str, [1, 2], n_threads=1) == ["1", "2"]


class TestSpectrumScan:
    """Test the in-memory scan."""

    def test_accessors(self):
        """Test the scan hands out float64 arrays and its metadata."""
        scan = SpectrumScan([600.0, 600.1], [1, 2], retention_time=3.5, scan_number=7)

        mz, intensity = scan.get_spectrum()
        assert intensity.dtype == np.float64
        assert scan.get_retention_time() == 3.5
        assert scan.get_scan_number() == 7

    def test_shape_mismatch(self):
        """Test mz and intensity must have the same shape."""
        with pytest.raises(InvalidArgumentError):
            SpectrumScan(np.ones(3), np.ones(4))
