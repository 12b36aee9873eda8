"""Tests for the wavelet filter bank."""

import numpy as np
import pytest

from alphawave.errors import InvalidArgumentError, UnsupportedFilterError
from alphawave.wavelet import available_filters, derive_haar_block, get_filter


class TestFilterLookup:
    """Test named filter lookup."""

    def test_filter_lengths(self):
        """Test every named filter has the expected number of taps."""
        expected = {"haar": 2, "d4": 4, "d6": 6, "d8": 8, "la8": 8, "la16": 16}

        for name, length in expected.items():
            filt = get_filter(name)
            assert filt.L == length
            assert len(filt.g) == length

    def test_unknown_filter(self):
        """Test unknown names raise UnsupportedFilterError."""
        with pytest.raises(UnsupportedFilterError):
            get_filter("bogus")

    def test_unknown_filter_is_value_error(self):
        """Test the error can be caught as an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            get_filter("d5")
        with pytest.raises(ValueError):
            get_filter("")

    def test_unit_energy(self):
        """Test sum of squares is 1 for both filters of every wavelet."""
        for name in available_filters():
            filt = get_filter(name)
            np.testing.assert_allclose(np.sum(filt.h ** 2), 1.0, atol=1e-10)
            np.testing.assert_allclose(np.sum(filt.g ** 2), 1.0, atol=1e-10)

    def test_wavelet_filter_has_zero_sum(self):
        """Test the high-pass filter annihilates constants."""
        for name in available_filters():
            assert abs(np.sum(get_filter(name).h)) < 1e-10

    def test_quadrature_mirror_relation(self):
        """Test h[l] = (-1)^l g[L-1-l] for all filters."""
        for name in available_filters():
            filt = get_filter(name)
            signs = (-1.0) ** np.arange(filt.L)
            np.testing.assert_allclose(filt.h, signs * filt.g[::-1], atol=1e-15)

    def test_coefficients_read_only(self):
        """Test the shared coefficient tables cannot be modified."""
        filt = get_filter("la8")

        with pytest.raises(ValueError):
            filt.h[0] = 1.0

    def test_str_lists_coefficients(self):
        """Test the printable form names the filter and its length."""
        text = str(get_filter("d4"))

        assert "d4" in text
        assert "L=4" in text


class TestHaarBlock:
    """Test block expansion of the Haar filter."""

    def test_block_length_and_taps(self):
        """Test scale 4 gives 8 taps of two constant blocks."""
        block = derive_haar_block(4)
        haar = get_filter("haar")

        assert block.L == 8
        np.testing.assert_allclose(block.h[:4], haar.h[0] / 2.0)
        np.testing.assert_allclose(block.h[4:], haar.h[1] / 2.0)
        np.testing.assert_allclose(block.g[:4], haar.g[0] / 2.0)

    def test_block_unit_energy(self):
        """Test block filters keep unit sum of squares."""
        for scale in (1, 2, 3, 8):
            block = derive_haar_block(scale)
            np.testing.assert_allclose(np.sum(block.h ** 2), 1.0, atol=1e-10)
            np.testing.assert_allclose(np.sum(block.g ** 2), 1.0, atol=1e-10)

    def test_convert_haar_method(self):
        """Test the Filter method matches the module function."""
        block = get_filter("haar").convert_haar(3)

        np.testing.assert_allclose(block.h, derive_haar_block(3).h)
        assert block.name == "haar3"

    def test_non_haar_rejected(self):
        """Test block expansion of a longer filter is refused."""
        with pytest.raises(InvalidArgumentError):
            derive_haar_block(2, base=get_filter("d4"))

    def test_invalid_scale(self):
        """Test scale below 1 is refused."""
        with pytest.raises(InvalidArgumentError):
            derive_haar_block(0)
