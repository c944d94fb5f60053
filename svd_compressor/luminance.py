import numpy as np

from .errors import InvalidDimensions

# Веса яркости (ITU-R BT.601)
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def project_luminance(raster):
    """RGBA-растр -> матрица яркости (H, W) float64"""
    if raster.width < 1 or raster.height < 1:
        raise InvalidDimensions(f"Пустой растр: {raster.width}x{raster.height}")
    pixels = np.asarray(raster.pixels)
    if pixels.shape != (raster.height, raster.width, 4):
        raise InvalidDimensions(f"Некорректная форма пикселей: {pixels.shape}")

    rgb = pixels[:, :, :3].astype(float)
    return rgb @ LUMA_WEIGHTS
