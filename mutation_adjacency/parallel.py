"""Parallel execution of sweep points using a multiprocessing pool."""
from __future__ import annotations

import logging
import multiprocessing as mp
import time
from typing import Iterable, List, Optional

from .errors import TaskFailure
from .simulator.engine import EstimateResult, SweepPoint, run_once

__all__ = ["WorkerPool", "run_batch"]

log = logging.getLogger(__name__)


class WorkerPool:
    """Process pool with an explicit start/shutdown lifecycle.

    One task is submitted per sweep point.  Results come back in the order
    the points were given, regardless of completion order.  A point whose
    task raises, or that has not finished when ``timeout`` expires, is
    returned as a failed `EstimateResult` and the other points are kept.
    Once a point has timed out the pool's workers are terminated, so no
    abandoned computation outlives the sweep.
    """

    def __init__(self, processes: Optional[int] = None, start_method: Optional[str] = None):
        self.processes = processes
        self.start_method = start_method
        self._pool = None

    @property
    def running(self) -> bool:
        return self._pool is not None

    def start(self) -> "WorkerPool":
        if self._pool is None:
            ctx = mp.get_context(self.start_method)
            self._pool = ctx.Pool(processes=self.processes)
            log.debug("Started worker pool (processes=%s)", self.processes)
        return self

    def shutdown(self, terminate: bool = False) -> None:
        """Stop the pool; ``terminate`` kills workers instead of letting them finish."""
        if self._pool is None:
            return
        if terminate:
            self._pool.terminate()
        else:
            self._pool.close()
        self._pool.join()
        self._pool = None
        log.debug("Worker pool shut down (terminate=%s)", terminate)

    def __enter__(self) -> "WorkerPool":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(terminate=exc_type is not None)

    def run(self, points: Iterable[SweepPoint], timeout: Optional[float] = None) -> List[EstimateResult]:
        if self._pool is None:
            raise RuntimeError("WorkerPool.run() called before start()")
        points = list(points)
        pending = [self._pool.apply_async(run_once, (point,)) for point in points]
        deadline = None if timeout is None else time.monotonic() + timeout

        results: List[EstimateResult] = []
        timed_out = False
        for point, task in zip(points, pending):
            if deadline is None:
                task.wait()
            else:
                task.wait(max(0.0, deadline - time.monotonic()))

            if not task.ready():
                timed_out = True
                failure = TaskFailure(point.n, point.k, message=f"timed out after {timeout}s")
                log.warning("%s", failure)
                results.append(EstimateResult.failed(point, failure))
                continue
            try:
                results.append(task.get())
            except Exception as exc:  # pylint: disable=broad-except
                failure = TaskFailure(point.n, point.k, cause=exc)
                log.warning("%s", failure)
                results.append(EstimateResult.failed(point, failure))

        if timed_out:
            # Workers may still be busy with abandoned points.
            self.shutdown(terminate=True)
        return results


def run_batch(
    points: Iterable[SweepPoint],
    processes: Optional[int] = None,
    timeout: Optional[float] = None,
    start_method: Optional[str] = None,
) -> List[EstimateResult]:
    """Run many sweep points in parallel."""
    with WorkerPool(processes=processes, start_method=start_method) as pool:
        return pool.run(points, timeout=timeout)
