"""
Конвейер сжатия:

    растр -> яркость -> (транспонирование) -> SVD -> ранг k -> (обратно) -> растр

Каждый вызов run() независим и имеет собственное состояние (Stage).
Разложение кэшируется по содержимому исходного растра: при смене одного
только k шаги проекции и SVD пропускаются.
"""

import enum
import hashlib
import logging
import threading
import time
from dataclasses import dataclass

import numpy as np

from .config import DEFAULT_METHOD
from .luminance import project_luminance
from .orientation import denormalize, normalize
from .raster import write_raster
from .reconstruct import check_rank, effective_rank, reconstruct
from .svd import decompose

logger = logging.getLogger(__name__)


class Stage(enum.Enum):
    IDLE = "idle"
    PROJECTING = "projecting"
    DECOMPOSING = "decomposing"
    RECONSTRUCTING = "reconstructing"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class CompressionResult:
    raster: object
    k_requested: int
    k_effective: int
    transposed: bool
    elapsed: float
    generation: int = None


def raster_digest(raster):
    h = hashlib.blake2b(digest_size=16)
    h.update(np.asarray(raster.shape, dtype=np.int64).tobytes())
    h.update(np.ascontiguousarray(raster.pixels).tobytes())
    return h.hexdigest()


class DecompositionCache:
    """Хранит разложение только для последнего исходного изображения"""

    def __init__(self):
        self._lock = threading.Lock()
        self._key = None
        self._value = None

    def get(self, key):
        with self._lock:
            if key == self._key:
                return self._value
            return None

    def put(self, key, value):
        # новое изображение полностью вытесняет старое
        with self._lock:
            self._key = key
            self._value = value

    def clear(self):
        self.put(None, None)


class _Run:
    """Состояние одного вызова конвейера"""

    def __init__(self, on_stage=None):
        self.stage = Stage.IDLE
        self.on_stage = on_stage

    def enter(self, stage):
        logger.debug("%s -> %s", self.stage.value, stage.value)
        self.stage = stage
        if self.on_stage is not None:
            self.on_stage(stage)


class CompressionPipeline:

    def __init__(self, method=DEFAULT_METHOD, cache=True):
        self.method = method
        self.cache = DecompositionCache() if cache else None

    def _decomposition(self, raster, run):
        key = None
        if self.cache is not None:
            key = (raster_digest(raster), self.method)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Разложение взято из кэша")
                return cached

        run.enter(Stage.PROJECTING)
        luminance = project_luminance(raster)
        matrix, transposed = normalize(luminance)

        run.enter(Stage.DECOMPOSING)
        decomp = decompose(matrix, method=self.method).freeze()

        if self.cache is not None:
            self.cache.put(key, (decomp, transposed))
        return decomp, transposed

    def decompose(self, raster):
        """(Decomposition, transposed) для растра, с учётом кэша"""
        return self._decomposition(raster, _Run())

    def run(self, raster, k, on_stage=None):
        """Сжимает растр до ранга k и возвращает CompressionResult.

        k <= 0 -> InvalidRank до начала вычислений; k больше min(H, W)
        обрезается. Ошибки любого шага пробрасываются как есть, состояние
        вызова переходит в FAILED.
        """
        run = _Run(on_stage)
        started = time.perf_counter()
        try:
            k = check_rank(k)
            decomp, transposed = self._decomposition(raster, run)
            k_eff = effective_rank(k, decomp.rank)

            run.enter(Stage.RECONSTRUCTING)
            approx = denormalize(reconstruct(decomp, k_eff), transposed)

            run.enter(Stage.WRITING)
            out = write_raster(approx)
        except Exception:
            failed_at = run.stage
            run.enter(Stage.FAILED)
            logger.error("Сжатие (k=%r) прервано на шаге %s", k, failed_at.value)
            raise

        run.enter(Stage.DONE)
        elapsed = time.perf_counter() - started
        logger.info(
            "Сжато %dx%d: k=%d (k_eff=%d, %s) за %.3f с",
            out.width, out.height, k, k_eff, self.method, elapsed,
        )
        return CompressionResult(
            raster=out,
            k_requested=k,
            k_effective=k_eff,
            transposed=transposed,
            elapsed=elapsed,
        )
