"""Чтение / запись изображений и статистика размеров"""

import io
import math
import os
from dataclasses import dataclass

import numpy as np
from PIL import Image
from skimage import util
from skimage import io as skio

from .config import JPEG_QUALITY
from .errors import InvalidDimensions
from .raster import Raster


def raster_from_array(img):
    """Массив изображения (ч/б, RGB, RGBA, ч/б + alpha) -> RGBA-растр uint8"""
    img = np.asarray(img)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    if img.ndim not in (2, 3) or 0 in img.shape[:2]:
        raise InvalidDimensions(f"Неподдерживаемая форма изображения: {img.shape}")

    img = util.img_as_ubyte(img)

    if img.ndim == 2:
        alpha = np.full(img.shape, 255, dtype=np.uint8)
        rgba = np.dstack([img, img, img, alpha])
    elif img.shape[2] == 2:
        rgba = np.dstack([img[:, :, 0], img[:, :, 0], img[:, :, 0], img[:, :, 1]])
    elif img.shape[2] == 3:
        alpha = np.full(img.shape[:2], 255, dtype=np.uint8)
        rgba = np.dstack([img, alpha])
    elif img.shape[2] == 4:
        rgba = img
    else:
        raise InvalidDimensions(f"Неподдерживаемое число каналов: {img.shape[2]}")

    return Raster.from_pixels(np.ascontiguousarray(rgba, dtype=np.uint8))


def load_raster(source):
    """Путь к файлу или байты изображения -> Raster"""
    if isinstance(source, (bytes, bytearray)):
        with Image.open(io.BytesIO(source)) as img:
            return raster_from_array(np.asarray(img.convert("RGBA")))
    return raster_from_array(skio.imread(os.fspath(source)))


def _is_gray(pixels):
    return np.array_equal(pixels[:, :, 0], pixels[:, :, 1]) and \
        np.array_equal(pixels[:, :, 1], pixels[:, :, 2])


def to_pil(raster):
    """Серый растр -> режим L, иначе RGB (прозрачность отбрасывается)"""
    if _is_gray(raster.pixels):
        return Image.fromarray(np.ascontiguousarray(raster.pixels[:, :, 0]))
    return Image.fromarray(np.ascontiguousarray(raster.pixels[:, :, :3]))


def encode_jpeg(raster, quality=JPEG_QUALITY):
    buf = io.BytesIO()
    to_pil(raster).save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def save_raster(raster, path, quality=JPEG_QUALITY):
    """Сохраняет растр; для JPEG — без альфа-канала"""
    path = os.fspath(path)
    ext = os.path.splitext(path)[1].lower()
    if ext in (".jpg", ".jpeg"):
        to_pil(raster).save(path, format="JPEG", quality=quality)
    else:
        skio.imsave(path, raster.pixels, check_contrast=False)
    return path


def format_bytes(n):
    if not n:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(n) / math.log(1024))), len(units) - 1)
    return f"{n / 1024 ** i:.2f} {units[i]}"


@dataclass(frozen=True)
class CompressionStats:
    original: int
    compressed: int

    @property
    def ratio(self):
        """Размер сжатого в процентах от оригинала"""
        if not self.original:
            return None
        return self.compressed / self.original * 100

    def summary(self):
        ratio = "—" if self.ratio is None or not self.compressed else f"{self.ratio:.1f}%"
        compressed = format_bytes(self.compressed) if self.compressed else "—"
        return f"Оригинал: {format_bytes(self.original)} | Сжатое: {compressed} | Доля: {ratio}"
