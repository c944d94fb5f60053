import numpy as np
import pytest

from svd_compressor.raster import Raster


def gray_raster(values):
    """Растр, у которого яркость каждого пикселя равна values"""
    values = np.asarray(values, dtype=np.uint8)
    h, w = values.shape
    pixels = np.empty((h, w, 4), dtype=np.uint8)
    pixels[:, :, :3] = values[:, :, None]
    pixels[:, :, 3] = 255
    return Raster(width=w, height=h, pixels=pixels)


def random_raster(h, w, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)
    return Raster(width=w, height=h, pixels=pixels)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def tall_raster():
    return random_raster(24, 16, seed=1)


@pytest.fixture
def wide_raster():
    return random_raster(12, 30, seed=2)


@pytest.fixture
def square_raster():
    return random_raster(10, 10, seed=3)
