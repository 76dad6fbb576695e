"""
Tests for background merge offload.
"""
import asyncio
import logging
import time
from concurrent.futures import ProcessPoolExecutor
import pytest

from tracksmith.core.errors import WorkerError, WorkerTimeoutError
from tracksmith.core.merge_executor import (
    InlineMergeExecutor,
    MergeRequest,
    MergeResponse,
    WorkerMergeExecutor,
    create_merge_executor,
    merge_worker,
)
from tracksmith.core.operations import cut


def mismatched_worker(request: MergeRequest) -> MergeResponse:
    response = merge_worker(request)
    return MergeResponse("someone-else", response.data, response.sample_rate)


def failing_worker(request: MergeRequest) -> MergeResponse:
    raise MemoryError("out of memory")


def slow_worker(request: MergeRequest) -> MergeResponse:
    time.sleep(0.5)
    return merge_worker(request)


@pytest.fixture
def halves(make_ramp):
    return cut(make_ramp(2.0), 0.5, 1.0)


class TestMergeWorker:
    """Tests for the worker entry point."""

    def test_echoes_correlation_id(self, halves):
        before, after = halves
        request = MergeRequest("abc", before.data, after.data, 2, 44100)
        response = merge_worker(request)
        assert response.correlation_id == "abc"
        assert response.data.shape == (66150, 2)


class TestExecutors:
    """Tests for inline and worker-backed executors."""

    def test_inline(self, halves):
        before, after = halves
        merged = asyncio.run(InlineMergeExecutor().merge(before, after, 2, 44100))
        assert merged.length == 66150

    def test_thread_worker(self, halves):
        before, after = halves
        executor = WorkerMergeExecutor(backend="thread")
        try:
            merged = asyncio.run(executor.merge(before, after, 2, 44100))
        finally:
            executor.close()
        assert merged.length == 66150
        assert merged.data[22050, 0] == after.data[0, 0]

    def test_mismatched_response_falls_back(self, halves, caplog):
        before, after = halves
        executor = WorkerMergeExecutor(worker=mismatched_worker)
        try:
            with caplog.at_level(logging.WARNING, logger="tracksmith"):
                merged = asyncio.run(executor.merge(before, after, 2, 44100))
        finally:
            executor.close()
        assert merged.length == 66150
        assert "merging inline" in caplog.text

    def test_mismatched_response_raises_inside(self, halves):
        before, after = halves
        executor = WorkerMergeExecutor(worker=mismatched_worker)
        try:
            with pytest.raises(WorkerError):
                asyncio.run(executor._merge_in_worker(before, after, 2, 44100))
        finally:
            executor.close()

    def test_worker_exception_falls_back(self, halves):
        before, after = halves
        executor = WorkerMergeExecutor(worker=failing_worker)
        try:
            merged = asyncio.run(executor.merge(before, after, 2, 44100))
        finally:
            executor.close()
        assert merged.length == 66150

    def test_timeout(self, halves):
        before, after = halves
        executor = WorkerMergeExecutor(worker=slow_worker, timeout=0.05)
        try:
            with pytest.raises(WorkerTimeoutError):
                asyncio.run(executor._merge_in_worker(before, after, 2, 44100))
            merged = asyncio.run(executor.merge(before, after, 2, 44100))
        finally:
            executor.close()
        assert merged.length == 66150

    def test_closed_pool_merges_inline(self, halves):
        before, after = halves
        executor = WorkerMergeExecutor()
        executor.close()
        assert not executor.is_available
        merged = asyncio.run(executor.merge(before, after, 2, 44100))
        assert merged.length == 66150

    def test_process_backend_uses_process_pool(self):
        executor = WorkerMergeExecutor(backend="process")
        try:
            assert isinstance(executor._pool, ProcessPoolExecutor)
        finally:
            executor.close()

    def test_factory(self):
        assert isinstance(create_merge_executor(use_worker=False), InlineMergeExecutor)
        executor = create_merge_executor()
        assert isinstance(executor, WorkerMergeExecutor)
        executor.close()
