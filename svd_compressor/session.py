"""
Фоновое сжатие с отбрасыванием устаревших результатов.

Каждый submit() получает номер поколения. Результат публикуется, только если
его поколение совпадает с последним запрошенным; проверка и публикация
выполняются атомарно под той же блокировкой, под которой submit() выдаёт
номера поколений. Устаревшие вычисления не прерываются, их результат
просто выбрасывается.
"""

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from .config import MAX_WORKERS
from .pipeline import CompressionPipeline

logger = logging.getLogger(__name__)


class CompressionSession:

    def __init__(self, pipeline=None, max_workers=MAX_WORKERS, on_result=None, on_error=None):
        self.pipeline = pipeline or CompressionPipeline()
        self.on_result = on_result
        self.on_error = on_error

        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="svd")
        # одна блокировка на выдачу поколений и публикацию результатов
        self._lock = threading.RLock()
        self._generation = 0
        self._source = None
        self._futures = {}

        self.latest = None
        self.last_error = None

    @property
    def generation(self):
        return self._generation

    @property
    def source(self):
        return self._source

    def set_source(self, raster):
        """Новое изображение: все запросы по старому становятся устаревшими"""
        with self._lock:
            self._generation += 1
            self._source = raster
            self.latest = None
            self.last_error = None

    def submit(self, k):
        """Ставит сжатие с рангом k в очередь, возвращает номер поколения"""
        with self._lock:
            if self._source is None:
                raise RuntimeError("Сначала выберите изображение (set_source)")
            self._generation += 1
            generation = self._generation
            raster = self._source
            future = self._executor.submit(self._work, generation, raster, k)
            self._futures[generation] = future
        future.add_done_callback(lambda f, g=generation: self._futures.pop(g, None))
        logger.debug("Поколение %d: k=%r", generation, k)
        return generation

    def _work(self, generation, raster, k):
        try:
            result = self.pipeline.run(raster, k)
        except Exception as e:
            self._publish_error(generation, e)
            raise
        self._publish(generation, dataclasses.replace(result, generation=generation))
        return result

    def _is_current(self, generation):
        return generation == self._generation

    def _publish(self, generation, result):
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Поколение %d устарело (текущее %d), результат отброшен",
                             generation, self._generation)
                return False
            self.latest = result
            self.last_error = None
            if self.on_result is not None:
                self.on_result(result)
            return True

    def _publish_error(self, generation, error):
        # предыдущий успешный результат остаётся в latest
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Ошибка устаревшего поколения %d отброшена: %s", generation, error)
                return False
            self.last_error = error
            if self.on_error is not None:
                self.on_error(generation, error)
            return True

    def wait(self, timeout=None):
        """Ждёт завершения всех запущенных задач (ошибки не пробрасываются)"""
        with self._lock:
            futures = list(self._futures.values())
        for future in futures:
            future.exception(timeout=timeout)
        return self.latest

    def close(self, wait=True):
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
