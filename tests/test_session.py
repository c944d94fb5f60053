"""
Тесты фонового сжатия с номерами поколений.
"""

import threading

import pytest

from svd_compressor.errors import InvalidRank
from svd_compressor.pipeline import CompressionPipeline
from svd_compressor.session import CompressionSession

from conftest import random_raster

TIMEOUT = 10


class GatedPipeline(CompressionPipeline):
    """Запросы с k из gated_k ждут, пока не откроют gate"""

    def __init__(self, gated_k):
        super().__init__()
        self.gated_k = set(gated_k)
        self.gate = threading.Event()

    def run(self, raster, k, on_stage=None):
        if k in self.gated_k:
            assert self.gate.wait(TIMEOUT)
        return super().run(raster, k, on_stage=on_stage)


@pytest.fixture
def source():
    return random_raster(60, 60, seed=7)


def make_session(pipeline):
    published, errors = [], []
    arrived = threading.Event()

    def on_result(result):
        published.append(result)
        arrived.set()

    def on_error(generation, error):
        errors.append((generation, error))
        arrived.set()

    session = CompressionSession(pipeline, max_workers=2, on_result=on_result, on_error=on_error)
    return session, published, errors, arrived


class TestGenerations:

    def test_latest_request_wins_when_earlier_finishes_later(self, source):
        pipeline = GatedPipeline(gated_k=[5])
        session, published, errors, arrived = make_session(pipeline)
        with session:
            session.set_source(source)
            g5 = session.submit(5)
            g50 = session.submit(50)
            assert g50 > g5

            assert arrived.wait(TIMEOUT)
            pipeline.gate.set()
            session.wait(TIMEOUT)

        assert [r.k_requested for r in published] == [50]
        assert session.latest.generation == g50
        assert session.latest.k_effective == 50
        assert not errors

    def test_generations_increase(self, source):
        session, _, _, _ = make_session(CompressionPipeline())
        with session:
            session.set_source(source)
            gens = [session.submit(k) for k in (1, 2, 3)]
            session.wait(TIMEOUT)
        assert gens == sorted(gens)
        assert len(set(gens)) == 3
        assert session.latest.generation == gens[-1]

    def test_new_source_discards_in_flight_result(self, source):
        pipeline = GatedPipeline(gated_k=[5])
        session, published, _, _ = make_session(pipeline)
        with session:
            session.set_source(source)
            session.submit(5)
            session.set_source(random_raster(20, 30, seed=8))
            pipeline.gate.set()
            session.wait(TIMEOUT)

        assert published == []
        assert session.latest is None

    def test_submit_without_source(self):
        session, _, _, _ = make_session(CompressionPipeline())
        with session:
            with pytest.raises(RuntimeError):
                session.submit(3)


class TestErrors:

    def test_failure_keeps_previous_output(self, source):
        session, published, errors, _ = make_session(CompressionPipeline())
        with session:
            session.set_source(source)
            session.submit(4)
            session.wait(TIMEOUT)
            previous = session.latest

            g = session.submit(0)
            session.wait(TIMEOUT)

        assert session.latest is previous
        assert len(published) == 1
        assert errors[0][0] == g
        assert isinstance(errors[0][1], InvalidRank)
        assert isinstance(session.last_error, InvalidRank)

    def test_stale_failure_is_discarded(self, source):
        pipeline = GatedPipeline(gated_k=[0])
        session, published, errors, arrived = make_session(pipeline)
        with session:
            session.set_source(source)
            session.submit(0)
            session.submit(3)
            assert arrived.wait(TIMEOUT)
            pipeline.gate.set()
            session.wait(TIMEOUT)

        assert errors == []
        assert session.latest.k_requested == 3
        assert session.last_error is None


class TestLocking:

    def test_submit_waits_for_publish_in_progress(self, source):
        """Пока результат публикуется, новое поколение не выдаётся"""
        entered, release = threading.Event(), threading.Event()
        seen = []

        def on_result(result):
            seen.append((result.generation, session.generation))
            entered.set()
            release.wait(TIMEOUT)

        session = CompressionSession(CompressionPipeline(), max_workers=2, on_result=on_result)
        with session:
            session.set_source(source)
            first = session.submit(3)
            assert entered.wait(TIMEOUT)

            submitted = threading.Event()
            worker = threading.Thread(target=lambda: (session.submit(4), submitted.set()))
            worker.start()
            assert not submitted.wait(0.2)

            release.set()
            worker.join(TIMEOUT)
            assert submitted.is_set()
            session.wait(TIMEOUT)

        assert seen[0] == (first, first)
        assert session.latest.k_requested == 4
