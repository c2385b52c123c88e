"""
Distance worker pool.

Each worker pulls one source Point at a time from the WorkQueue, evaluates
its distance to every point of the shared PointTable in table order, and
pushes one DistanceResult per pair to the ResultConduit. When the WorkQueue
is closed and drained the worker reports completion exactly once on the
pool's completion channel: ``(worker_id, None)`` on success or
``(worker_id, "<error>")`` on failure.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import threading
from dataclasses import dataclass
from typing import Callable

import numpy as np

from .conduits import QueueBackend, ResultConduit, WorkQueue, make_queue
from .distance import haversine
from .errors import ComputationError
from .points import PointTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistanceResult:
    source: str
    dest: str
    distance: float

    def to_row(self, precision: int = 3) -> tuple[str, str, str]:
        return self.source, self.dest, f"{self.distance:.{precision}f}"


# ---------------------------------------------------------------------------
# Worker loop
# ---------------------------------------------------------------------------
def calc_distances(
    worker_id: int,
    work: WorkQueue,
    results: ResultConduit,
    done,
    table: PointTable,
    unit: str = "mi",
    half_matrix: bool = False,
) -> None:
    """
    Worker entry point (thread target or process target).

    In half-matrix mode a source is only paired with the points positioned
    after it, so each unordered pair is produced once.
    """
    try:
        for src in work:
            start = table.position(src.label) + 1 if half_matrix else 0
            dists = haversine(src.lat, src.lng, table.lats[start:], table.lngs[start:], unit=unit)
            if not np.all(np.isfinite(dists)):
                raise ComputationError(f"non-finite distance from '{src.label}'")
            for dst, dist in zip(table.points[start:], dists):
                results.put(DistanceResult(src.label, dst.label, float(dist)))
    except Exception as exc:
        logger.exception(f"Worker {worker_id} failed")
        done.put((worker_id, f"{type(exc).__name__}: {exc}"))
    else:
        done.put((worker_id, None))


# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------
class WorkerPool:
    """
    Fixed-size pool of symmetric distance workers.

    The pool owns the completion channel. ``wait()`` is the rendezvous: it
    returns only after every worker has signalled, so the caller may then
    safely close the result conduit.
    """

    def __init__(
        self,
        size: int,
        work: WorkQueue,
        results: ResultConduit,
        table: PointTable,
        unit: str = "mi",
        half_matrix: bool = False,
        backend: QueueBackend = QueueBackend.THREAD,
    ):
        if size < 1:
            raise ValueError(f"pool size must be >= 1, got {size}")
        self.size = size
        self.backend = backend
        self._done = make_queue(backend)
        self._finished = 0
        self._workers = []
        self._args = (work, results, self._done, table, unit, half_matrix)

    @property
    def finished(self) -> int:
        return self._finished

    def start(self):
        for worker_id in range(self.size):
            args = (worker_id,) + self._args
            if self.backend == QueueBackend.PROCESS:
                worker = mp.Process(
                    target=calc_distances, args=args, name=f"distance-worker-{worker_id}", daemon=True
                )
            else:
                worker = threading.Thread(
                    target=calc_distances, args=args, name=f"distance-worker-{worker_id}", daemon=True
                )
            worker.start()
            self._workers.append(worker)
        logger.info(f"Started {self.size} {self.backend.value} worker(s)")

    def _receive(self, timeout: float | None) -> bool:
        """Consume one completion signal. Returns False on timeout."""
        try:
            worker_id, error = self._done.get(timeout=timeout)
        except queue.Empty:
            return False
        self._finished += 1
        if error is not None:
            raise ComputationError(f"worker {worker_id} failed: {error}")
        logger.debug(f"Worker {worker_id} finished ({self._finished}/{self.size})")
        return True

    def check(self):
        """Consume any pending completion signals without blocking."""
        while self._finished < self.size and self._receive(timeout=0):
            pass

    def wait(self, poll_interval: float = 0.1, abort_check: Callable[[], None] | None = None):
        """
        Block until all workers have reported completion.

        *abort_check* is called between polls and may raise to abandon the
        wait (e.g. when the result sink has failed).
        """
        while self._finished < self.size:
            if not self._receive(timeout=poll_interval) and abort_check is not None:
                abort_check()
        # a worker process only exits once its queued results reached the pipe
        for worker in self._workers:
            worker.join()

    def terminate(self):
        """Stop process workers immediately. Threads are daemonic and abandoned."""
        for worker in self._workers:
            if isinstance(worker, mp.Process) and worker.is_alive():
                worker.terminate()
