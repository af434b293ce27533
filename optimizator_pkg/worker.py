"""Concurrent execution of independent optimization requests.

Each job compiles its own function and owns its simplex; the only thing jobs
share is the pool's cancel event, which they poll once per iteration together
with their own deadline.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor

from .api import run
from .config import WORKER_POOL_SIZE, WORKER_TIMEOUT
from .logging_config import get_logger
from .optimizer import DEFAULT_PARAMS, NelderMeadParams
from .types import OptimizationQuery, OptimizationResult

logger = get_logger("worker")


class OptimizationPool:
    """Thread pool running optimization queries with cooperative cancellation.

    Usage:
        with OptimizationPool(max_workers=4) as pool:
            results = pool.map(queries)
    """

    def __init__(
        self,
        max_workers: int = WORKER_POOL_SIZE,
        timeout: float | None = WORKER_TIMEOUT,
        params: NelderMeadParams = DEFAULT_PARAMS,
    ):
        if max_workers <= 0:
            raise ValueError("max_workers must be positive")
        self.timeout = timeout if timeout and timeout > 0 else None
        self.params = params
        self._cancel = threading.Event()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="optimizator"
        )

    def _run(self, query: OptimizationQuery, record_history: bool) -> OptimizationResult:
        deadline = time.monotonic() + self.timeout if self.timeout else None
        timed_out = False

        def should_stop() -> bool:
            nonlocal timed_out
            if self._cancel.is_set():
                return True
            if deadline is not None and time.monotonic() > deadline:
                timed_out = True
                return True
            return False

        result = run(
            query,
            params=self.params,
            should_stop=should_stop,
            record_history=record_history,
        )
        if timed_out and result.error_code == "CANCELLED":
            logger.warning(f"{query.function!r} timed out after {self.timeout}s")
            result.error_code = "TIMEOUT"
            result.error = f"Optimization timed out after {self.timeout}s"
        return result

    def submit(
        self, query: OptimizationQuery, record_history: bool = False
    ) -> Future[OptimizationResult]:
        """Schedule one query; the future resolves to an OptimizationResult."""
        return self._executor.submit(self._run, query, record_history)

    def map(
        self, queries: Iterable[OptimizationQuery], record_history: bool = False
    ) -> list[OptimizationResult]:
        """Run queries concurrently and return results in input order."""
        futures = [self.submit(q, record_history) for q in queries]
        return [f.result() for f in futures]

    def cancel_all(self) -> None:
        """Ask every job to stop at its next iteration; queued jobs stop before their first."""
        logger.info("Cancelling all optimization jobs")
        self._cancel.set()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> OptimizationPool:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()


def optimize_many(
    queries: Iterable[OptimizationQuery],
    max_workers: int = WORKER_POOL_SIZE,
    timeout: float | None = WORKER_TIMEOUT,
    params: NelderMeadParams = DEFAULT_PARAMS,
) -> list[OptimizationResult]:
    """Run several optimizations concurrently; results keep the input order."""
    queries = list(queries)
    logger.debug(f"Running {len(queries)} optimizations on {max_workers} workers")
    with OptimizationPool(max_workers=max_workers, timeout=timeout, params=params) as pool:
        return pool.map(queries)
