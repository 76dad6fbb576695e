"""
Background merge offload for tracksmith.

Concatenating long buffers can block the event loop for a noticeable time,
so cut and delete hand the final merge to a worker pool. Any worker failure
falls back to merging on the calling thread.
"""
from __future__ import annotations
import asyncio
import logging
import uuid
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .buffer import SampleBuffer
from .config import WORKER_CONFIG
from .errors import WorkerError, WorkerTimeoutError
from .operations import merge
from .types import AudioArray

logger = logging.getLogger("tracksmith")


@dataclass(frozen=True)
class MergeRequest:
    """Raw channel data shipped to a worker."""
    correlation_id: str
    before: AudioArray
    after: AudioArray
    channels: int
    sample_rate: int


@dataclass(frozen=True)
class MergeResponse:
    """Merged channel data coming back from a worker."""
    correlation_id: str
    data: AudioArray
    sample_rate: int


def merge_worker(request: MergeRequest) -> MergeResponse:
    """Worker entry point; must stay importable at module level for process pools."""
    merged = merge(
        SampleBuffer(request.before, request.sample_rate),
        SampleBuffer(request.after, request.sample_rate),
        request.channels,
        request.sample_rate,
    )
    return MergeResponse(request.correlation_id, merged.data, merged.sample_rate)


class MergeExecutor(Protocol):
    """Anything that can merge two buffers without blocking the caller."""

    async def merge(
        self,
        before: SampleBuffer,
        after: SampleBuffer,
        channels: int,
        sample_rate: int
    ) -> SampleBuffer: ...

    def close(self) -> None: ...


class InlineMergeExecutor:
    """Merges on the calling thread."""

    async def merge(
        self,
        before: SampleBuffer,
        after: SampleBuffer,
        channels: int,
        sample_rate: int
    ) -> SampleBuffer:
        return merge(before, after, channels, sample_rate)

    def close(self) -> None:
        pass


class WorkerMergeExecutor:
    """
    Merges in a ``concurrent.futures`` pool.

    The thread backend shares the arrays with the worker; the process backend
    pickles them across. Every request carries a correlation id that the
    response must echo.
    """

    def __init__(
        self,
        backend: str = WORKER_CONFIG.backend,
        max_workers: int = WORKER_CONFIG.max_workers,
        timeout: float = WORKER_CONFIG.timeout_seconds,
        pool: Optional[Executor] = None,
        worker: Callable[[MergeRequest], MergeResponse] = merge_worker
    ) -> None:
        """
        Args:
            backend: "thread" or "process"
            max_workers: Pool size
            timeout: Seconds to wait for a worker response
            pool: Pre-built executor (overrides backend/max_workers)
            worker: Function run inside the pool
        """
        if pool is None:
            pool_cls = ProcessPoolExecutor if str(backend).lower() == "process" else ThreadPoolExecutor
            pool = pool_cls(max_workers=max_workers)
        self._pool: Optional[Executor] = pool
        self._timeout = timeout
        self._worker = worker

    @property
    def is_available(self) -> bool:
        return self._pool is not None

    async def merge(
        self,
        before: SampleBuffer,
        after: SampleBuffer,
        channels: int,
        sample_rate: int
    ) -> SampleBuffer:
        """
        Merge in the pool, or synchronously if the worker path fails.
        """
        try:
            return await self._merge_in_worker(before, after, channels, sample_rate)
        except WorkerError as e:
            logger.warning("Background merge failed, merging inline: %s", e)
        return merge(before, after, channels, sample_rate)

    async def _merge_in_worker(
        self,
        before: SampleBuffer,
        after: SampleBuffer,
        channels: int,
        sample_rate: int
    ) -> SampleBuffer:
        if self._pool is None:
            raise WorkerError("Worker pool is not available")

        request = MergeRequest(
            correlation_id=uuid.uuid4().hex,
            before=before.data,
            after=after.data,
            channels=channels,
            sample_rate=sample_rate,
        )

        loop = asyncio.get_running_loop()
        try:
            future = loop.run_in_executor(self._pool, self._worker, request)
        except RuntimeError as e:
            # Raised by a pool that has already been shut down
            raise WorkerError(f"Worker pool rejected the request: {e}") from e

        try:
            response = await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise WorkerTimeoutError(f"No response after {self._timeout:.1f}s") from e
        except Exception as e:
            raise WorkerError(f"Worker raised {type(e).__name__}: {e}") from e

        if response.correlation_id != request.correlation_id:
            raise WorkerError(
                f"Response id {response.correlation_id} does not match request {request.correlation_id}"
            )

        return SampleBuffer(response.data, response.sample_rate)

    def close(self) -> None:
        """Shut the pool down; later merges run inline."""
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None


def create_merge_executor(use_worker: bool = True) -> MergeExecutor:
    """Worker-backed executor when requested, inline otherwise."""
    if use_worker:
        return WorkerMergeExecutor()
    return InlineMergeExecutor()
