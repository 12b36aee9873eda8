"""Tests for DWT/MODWT transforms and multiresolution analysis.

Covers:
- Perfect reconstruction of single DWT and MODWT steps
- Additive multiresolution for every filter, method and boundary
- Circular shift equivariance of the MODWT
- Input validation and dtype preservation
"""

import numpy as np
import pytest

from alphawave.errors import InvalidArgumentError, UnsupportedFilterError
from alphawave.wavelet import (
    WaveletParams,
    available_filters,
    decompose,
    dwt,
    get_filter,
    idwt,
    imodwt,
    modwt,
    multiresolution,
    pad_to_double,
    reflect_vector,
    unpad,
    wavelet_d3,
    wavelet_dx,
    wavelet_filter,
    wrap,
)


class TestSingleSteps:
    """Test one forward/inverse step."""

    def test_wrap(self):
        """Test circular indexing for negative and overflowing indexes."""
        assert wrap(-1, 8) == 7
        assert wrap(8, 8) == 0
        assert wrap(-9, 8) == 7
        assert wrap(3, 8) == 3

    def test_dwt_round_trip(self, random_signal):
        """Test idwt(dwt(x)) reproduces x for every filter."""
        for name in available_filters():
            filt = get_filter(name)
            w, v = dwt(random_signal, filt)

            assert len(w) == len(random_signal) // 2
            np.testing.assert_allclose(idwt(w, v, filt), random_signal, rtol=1e-9, atol=1e-9)

    def test_dwt_haar_values(self):
        """Test Haar DWT on a tiny signal against hand-computed values."""
        s = np.sqrt(0.5)
        w, v = dwt(np.array([1.0, 3.0, 2.0, 2.0]), get_filter("haar"))

        # W_t = h0 * x[2t+1] + h1 * x[2t]
        np.testing.assert_allclose(w, [s * (3.0 - 1.0), 0.0], atol=1e-12)
        np.testing.assert_allclose(v, [s * 4.0, s * 4.0], atol=1e-12)

    def test_dwt_odd_length(self):
        """Test a DWT step refuses odd lengths."""
        with pytest.raises(InvalidArgumentError):
            dwt(np.ones(7), get_filter("haar"))

    def test_modwt_round_trip(self, odd_length_signal):
        """Test imodwt(modwt(x)) reproduces x at several levels."""
        for name in ("haar", "d4", "la8"):
            filt = get_filter(name)
            for level in (1, 2, 3):
                w, v = modwt(odd_length_signal, level, filt)
                np.testing.assert_allclose(
                    imodwt(w, v, level, filt), odd_length_signal, rtol=1e-9, atol=1e-9
                )

    def test_modwt_preserves_energy(self, random_signal):
        """Test ||W||^2 + ||V||^2 == ||x||^2 for one MODWT step."""
        w, v = modwt(random_signal, 1, get_filter("d6"))

        np.testing.assert_allclose(
            np.sum(w ** 2) + np.sum(v ** 2), np.sum(random_signal ** 2), rtol=1e-9
        )

    def test_modwt_invalid_level(self):
        """Test level 0 is refused."""
        with pytest.raises(InvalidArgumentError):
            modwt(np.ones(8), 0, get_filter("haar"))

    def test_reflect_vector(self):
        """Test mirror extension appends the reversed signal."""
        np.testing.assert_array_equal(reflect_vector(np.array([1.0, 2.0, 3.0])),
                                      [1.0, 2.0, 3.0, 3.0, 2.0, 1.0])


class TestDecompose:
    """Test multi-level decomposition."""

    def test_row_count_and_lengths_modwt(self, odd_length_signal):
        """Test MODWT gives K + 1 rows of length N."""
        rows = decompose(odd_length_signal, 4, get_filter("la8"), "modwt", "periodic")

        assert len(rows) == 5
        assert all(len(row) == 100 for row in rows)

    def test_row_lengths_dwt(self, random_signal):
        """Test DWT rows halve in length per level."""
        rows = decompose(random_signal, 3, get_filter("d4"), "dwt", "periodic")

        assert [len(row) for row in rows] == [32, 16, 8, 8]

    def test_reflection_doubles_working_length(self, odd_length_signal):
        """Test reflection boundary works on 2N samples."""
        rows = decompose(odd_length_signal, 2, get_filter("haar"), "modwt", "reflection")

        assert all(len(row) == 200 for row in rows)

    def test_modwt_shift_equivariance(self, odd_length_signal):
        """Test shifting the signal circularly shifts every MODWT row."""
        filt = get_filter("la8")
        rows = decompose(odd_length_signal, 3, filt, "modwt", "periodic")
        shifted = decompose(np.roll(odd_length_signal, 5), 3, filt, "modwt", "periodic")

        for row, shifted_row in zip(rows, shifted):
            np.testing.assert_allclose(shifted_row, np.roll(row, 5), atol=1e-10)

    def test_float32_preserved(self, random_signal):
        """Test float32 input gives float32 rows."""
        rows = decompose(random_signal.astype(np.float32), 2, get_filter("haar"))

        assert all(row.dtype == np.float32 for row in rows)

    def test_non_dyadic_dwt(self, odd_length_signal):
        """Test DWT refuses non power-of-two lengths."""
        with pytest.raises(InvalidArgumentError):
            decompose(odd_length_signal, 2, get_filter("haar"), "dwt", "periodic")

    def test_too_many_dwt_levels(self):
        """Test DWT refuses more levels than halvings."""
        with pytest.raises(InvalidArgumentError):
            decompose(np.ones(8), 4, get_filter("haar"), "dwt", "periodic")

    def test_invalid_options(self, random_signal):
        """Test unknown method, boundary and zero levels are refused."""
        filt = get_filter("haar")

        with pytest.raises(InvalidArgumentError):
            decompose(random_signal, 2, filt, "fft", "periodic")
        with pytest.raises(InvalidArgumentError):
            decompose(random_signal, 2, filt, "modwt", "zero")
        with pytest.raises(InvalidArgumentError):
            decompose(random_signal, 0, filt, "modwt", "periodic")

    def test_empty_signal(self):
        """Test an empty signal is refused."""
        with pytest.raises(InvalidArgumentError):
            decompose(np.array([]), 1, get_filter("haar"))


class TestMultiresolution:
    """Test additive multiresolution analysis."""

    @pytest.mark.parametrize("method", ["dwt", "modwt"])
    @pytest.mark.parametrize("boundary", [None, "periodic", "reflection"])
    def test_rows_sum_to_signal(self, random_signal, method, boundary):
        """Test the K + 1 rows add up to the signal for every filter."""
        n = len(random_signal)
        for name in available_filters():
            filt = get_filter(name)
            rows = decompose(random_signal, 3, filt, method, boundary)
            mra = multiresolution(rows, n, 3, filt, method, boundary)

            assert len(mra) == 4
            total = np.sum(mra, axis=0)
            np.testing.assert_allclose(total[:n], random_signal, rtol=1e-9, atol=1e-9)

    def test_reflection_rows_sum_to_mirror(self, odd_length_signal):
        """Test under reflection the rows reconstruct the whole 2N extension."""
        filt = get_filter("d4")
        rows = decompose(odd_length_signal, 2, filt, "modwt", "reflection")
        mra = multiresolution(rows, 100, 2, filt, "modwt", "reflection")

        np.testing.assert_allclose(
            np.sum(mra, axis=0), reflect_vector(odd_length_signal), atol=1e-9
        )

    def test_constant_signal_has_no_detail(self):
        """Test constants end up entirely in the smooth row."""
        filt = get_filter("la8")
        x = np.full(64, 3.5)
        mra = multiresolution(decompose(x, 3, filt), 64, 3, filt)

        for row in mra[:-1]:
            np.testing.assert_allclose(row, 0.0, atol=1e-9)
        np.testing.assert_allclose(mra[-1], x, atol=1e-9)

    def test_row_count_mismatch(self, random_signal):
        """Test a decomposition with the wrong number of rows is refused."""
        filt = get_filter("haar")
        rows = decompose(random_signal, 3, filt)

        with pytest.raises(InvalidArgumentError):
            multiresolution(rows, len(random_signal), 2, filt)

    def test_dwt_non_dyadic_length(self, random_signal):
        """Test DWT reconstruction refuses a non power-of-two length."""
        filt = get_filter("haar")
        rows = decompose(random_signal, 3, filt, "dwt")

        with pytest.raises(InvalidArgumentError):
            multiresolution(rows, 60, 3, filt, "dwt")

    def test_dwt_row_length_mismatch(self, random_signal):
        """Test DWT rows must halve per level from the working length."""
        filt = get_filter("haar")
        rows = decompose(random_signal, 3, filt, "dwt")
        rows[1] = np.zeros(len(random_signal) // 2)

        with pytest.raises(InvalidArgumentError):
            multiresolution(rows, len(random_signal), 3, filt, "dwt")

    def test_modwt_row_length_mismatch(self, random_signal):
        """Test MODWT rows must all have the working length."""
        filt = get_filter("haar")
        rows = decompose(random_signal, 2, filt)

        with pytest.raises(InvalidArgumentError):
            multiresolution(rows, len(random_signal), 2, filt, "modwt", "reflection")


class TestConvenience:
    """Test detail extraction, padding and band filtering."""

    def test_wavelet_dx_matches_mra_row(self, odd_length_signal):
        """Test wavelet_dx is the signal-domain Haar MODWT detail."""
        haar = get_filter("haar")
        mra = multiresolution(decompose(odd_length_signal, 3, haar), 100, 3, haar)

        np.testing.assert_allclose(wavelet_dx(odd_length_signal, 3), mra[2], atol=1e-12)
        np.testing.assert_allclose(wavelet_d3(odd_length_signal), mra[2], atol=1e-12)

    def test_pad_to_double(self):
        """Test padding keeps the signal in the middle and wraps without a jump."""
        x = np.array([2.0, 5.0, 4.0, 6.0])
        padded = pad_to_double(x, 2)

        assert len(padded) == 8
        np.testing.assert_array_equal(padded[2:6], x)
        # both outer samples sit on the mid value of the two ends
        assert padded[0] == pytest.approx(4.0)
        assert padded[-1] == pytest.approx(4.0)

    def test_unpad_inverts_padding(self):
        """Test unpad recovers the original signal."""
        x = np.arange(10, dtype=np.float64)

        np.testing.assert_array_equal(unpad(pad_to_double(x, 4), 4), x)

    def test_wavelet_filter_removes_constant(self):
        """Test band filtering a constant leaves nothing."""
        filtered = wavelet_filter(np.full(50, 7.0), 4, 2)

        assert len(filtered) == 50
        np.testing.assert_allclose(filtered, 0.0, atol=1e-9)

    def test_wavelet_filter_invalid_keep(self):
        """Test n_keep outside [1, n_levels] is refused."""
        with pytest.raises(InvalidArgumentError):
            wavelet_filter(np.ones(16), 3, 4)


class TestWaveletParams:
    """Test decomposition parameter validation."""

    def test_defaults(self):
        """Test default parameters resolve to the la8 filter."""
        params = WaveletParams()

        assert params.filter.name == "la8"
        assert params.method == "modwt"

    def test_unknown_filter(self):
        """Test unknown filter names are refused."""
        with pytest.raises(UnsupportedFilterError):
            WaveletParams(filter_name="sym4")

    def test_unknown_method(self):
        """Test unknown methods are refused."""
        with pytest.raises(InvalidArgumentError):
            WaveletParams(method="cwt")
