from dataclasses import dataclass

import numpy as np

from .errors import InvalidDimensions


@dataclass(frozen=True)
class Raster:
    """RGBA-растр: pixels имеет форму (height, width, 4), dtype uint8"""
    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise InvalidDimensions(f"Пустой растр: {self.width}x{self.height}")
        pixels = np.asarray(self.pixels)
        if pixels.shape != (self.height, self.width, 4):
            raise InvalidDimensions(
                f"Форма пикселей {pixels.shape} не совпадает с "
                f"({self.height}, {self.width}, 4)"
            )
        if pixels.dtype != np.uint8:
            raise InvalidDimensions(f"Ожидался uint8, получено {pixels.dtype}")
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_pixels(cls, pixels):
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidDimensions(f"Ожидался массив (H, W, 4), получено {pixels.shape}")
        return cls(width=pixels.shape[1], height=pixels.shape[0], pixels=pixels)

    @property
    def shape(self):
        return self.height, self.width

    def grayscale(self):
        """Канал R как (H, W) — для растров, записанных write_raster"""
        return self.pixels[:, :, 0]


def write_raster(matrix):
    """Восстановленная матрица (H, W) -> серый RGBA-растр с A = 255.

    Значения жёстко обрезаются до [0, 255] и округляются, без масштабирования.
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or 0 in matrix.shape:
        raise InvalidDimensions(f"Ожидалась непустая 2D матрица, получено {matrix.shape}")

    # NaN -> 0, +inf -> 255, -inf -> 0
    values = np.nan_to_num(matrix, nan=0.0, posinf=255.0, neginf=0.0)
    gray = np.rint(np.clip(values, 0, 255)).astype(np.uint8)

    h, w = gray.shape
    pixels = np.empty((h, w, 4), dtype=np.uint8)
    pixels[:, :, 0] = gray
    pixels[:, :, 1] = gray
    pixels[:, :, 2] = gray
    pixels[:, :, 3] = 255
    return Raster(width=w, height=h, pixels=pixels)
