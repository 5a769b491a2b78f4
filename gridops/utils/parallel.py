"""
Line-parallel execution for grid-wide operator loops.

Each operator call decomposes its output region into contiguous chunks of
grid lines. Chunks are independent: every chunk reads the shared input field
and writes a disjoint slice of the output, so no synchronisation is needed
beyond the join at the end of the call.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Any

from gridops.utils.grid_logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


def chunk_slices(start: int, stop: int, n_chunks: int) -> list[slice]:
    """
    Split ``range(start, stop)`` into at most ``n_chunks`` contiguous slices.

    Earlier chunks absorb the remainder, so sizes differ by at most one and
    empty chunks are never produced.

    >>> chunk_slices(0, 10, 3)
    [slice(0, 4, None), slice(4, 7, None), slice(7, 10, None)]
    """
    if n_chunks < 1:
        raise ValueError(f"n_chunks must be >= 1, got {n_chunks}")
    length = max(stop - start, 0)
    n_chunks = min(n_chunks, length) or 1
    base, extra = divmod(length, n_chunks)

    slices = []
    lo = start
    for i in range(n_chunks):
        hi = lo + base + (1 if i < extra else 0)
        slices.append(slice(lo, hi))
        lo = hi
    return slices


class LineExecutor:
    """
    Runs per-chunk work on a lazily created thread pool.

    With ``num_workers == 1`` the work runs inline on the calling thread and no
    pool is ever created. The worker index passed to each task equals the
    chunk index, so per-worker scratch storage can be indexed without locks.

    Args:
        num_workers: Number of concurrent line chunks
    """

    def __init__(self, num_workers: int = 1):
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")
        self.num_workers = num_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            with self._lock:
                if self._executor is None:
                    logger.debug(f"Starting line pool with {self.num_workers} workers")
                    self._executor = ThreadPoolExecutor(max_workers=self.num_workers, thread_name_prefix="gridops")
        return self._executor

    def map_chunks(self, task: Callable[[int, slice], Any], start: int, stop: int) -> list[Any]:
        """
        Apply ``task(worker_index, chunk)`` over the chunks of ``[start, stop)``.

        Returns:
            Task results in chunk order. The first exception raised by any
            chunk propagates after all chunks have finished.
        """
        chunks = chunk_slices(start, stop, self.num_workers)
        if len(chunks) == 1:
            return [task(0, chunks[0])]

        pool = self._pool()
        futures = {pool.submit(task, i, chunk): i for i, chunk in enumerate(chunks)}
        results: list[Any] = [None] * len(chunks)
        error: BaseException | None = None
        for future in as_completed(futures):
            exc = future.exception()
            if exc is not None:
                error = error or exc
                continue
            results[futures[future]] = future.result()
        if error is not None:
            raise error
        return results

    def shutdown(self) -> None:
        """Stop the worker threads; a later call restarts the pool lazily."""
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self) -> LineExecutor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
