"""
Тесты записи восстановленной матрицы в RGBA-растр.
"""

import numpy as np
import pytest

from svd_compressor.errors import InvalidDimensions
from svd_compressor.raster import Raster, write_raster


class TestWriteRaster:

    def test_clamp_and_round(self):
        out = write_raster(np.array([[-20.0, 0.4, 127.5], [254.6, 255.0, 1000.0]]))
        np.testing.assert_array_equal(out.grayscale(), [[0, 0, 128], [255, 255, 255]])

    def test_channels_replicated_and_opaque(self, rng):
        out = write_raster(rng.uniform(0, 255, size=(4, 6)))
        assert out.shape == (4, 6)
        assert out.pixels.dtype == np.uint8
        np.testing.assert_array_equal(out.pixels[:, :, 0], out.pixels[:, :, 1])
        np.testing.assert_array_equal(out.pixels[:, :, 1], out.pixels[:, :, 2])
        assert np.all(out.pixels[:, :, 3] == 255)

    def test_non_finite_values_clamped(self):
        out = write_raster(np.array([[np.nan, np.inf, -np.inf]]))
        np.testing.assert_array_equal(out.grayscale(), [[0, 255, 0]])

    def test_no_rescaling(self):
        """Значения внутри диапазона не растягиваются"""
        out = write_raster(np.array([[10.0, 20.0]]))
        np.testing.assert_array_equal(out.grayscale(), [[10, 20]])

    def test_empty_matrix_rejected(self):
        with pytest.raises(InvalidDimensions):
            write_raster(np.zeros((0, 3)))


class TestRaster:

    def test_from_pixels(self):
        r = Raster.from_pixels(np.zeros((3, 5, 4), dtype=np.uint8))
        assert (r.width, r.height) == (5, 3)

    def test_wrong_dtype_rejected(self):
        with pytest.raises(InvalidDimensions):
            Raster.from_pixels(np.zeros((3, 5, 4), dtype=float))
