"""
Pipeline coordinator.

Lifecycle
---------
INIT -> LOADING -> DISPATCHING -> DRAINING -> FLUSHING -> DONE

1. LOADING      read the input table, prepare the output writer.
2. DISPATCHING  start the result sink and the worker pool, push every point
                onto the work queue, then close it.
3. DRAINING     wait for exactly one completion signal per worker, then
                close the result conduit (no worker can push any more).
4. FLUSHING     wait for the sink's final flush and release of the output.

Any error moves the pipeline to ABORTED: the sink stops writing and releases
the output, process workers are terminated, and the error is re-raised.
Rows already flushed stay on disk.

Usage
-----
    from pairdist.coordinator import Coordinator
    report = Coordinator(PipelineConfig(worker_count=8)).run("zips.csv", "out.csv")
"""

from __future__ import annotations

import logging
import queue
import time
from dataclasses import dataclass
from enum import Enum

from .conduits import ResultConduit, WorkQueue
from .config import PipelineConfig
from .points import PointTable, load_points
from .sink import BatchWriter, CsvBatchWriter, ResultSink
from .workers import WorkerPool

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    INIT = "init"
    LOADING = "loading"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    FLUSHING = "flushing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PipelineReport:
    points: int
    workers: int
    rows_written: int
    batches: int
    elapsed_s: float
    state: PipelineState


class Coordinator:
    """Wires table, queues, workers and sink together and runs them to completion."""

    def __init__(self, config: PipelineConfig | None = None):
        self.config = config or PipelineConfig()
        self.state = PipelineState.INIT

    def _transition(self, state: PipelineState):
        logger.info(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state

    def run(self, input_path: str, output_path: str) -> PipelineReport:
        """Load *input_path*, compute all pair distances, write *output_path*."""
        self._transition(PipelineState.LOADING)
        try:
            table = load_points(input_path)
        except Exception:
            self._transition(PipelineState.ABORTED)
            raise
        logger.info(f"Loaded {len(table)} points from {input_path}")
        return self.execute(table, CsvBatchWriter(output_path))

    def execute(self, table: PointTable, writer: BatchWriter) -> PipelineReport:
        """Run the dispatch / drain / flush stages over an already loaded table."""
        cfg = self.config
        started = time.perf_counter()
        n_workers = cfg.resolve_worker_count()
        logger.info(f"Pipeline config: {cfg.to_dict()}")

        work = WorkQueue(
            consumers=n_workers,
            maxsize=cfg.work_queue_size or len(table),
            backend=cfg.backend,
        )
        results = ResultConduit(maxsize=cfg.result_buffer, backend=cfg.backend)
        sink = ResultSink(results, writer, batch_size=cfg.batch_size, precision=cfg.precision)
        pool = WorkerPool(
            n_workers,
            work,
            results,
            table,
            unit=cfg.unit,
            half_matrix=cfg.half_matrix,
            backend=cfg.backend,
        )

        try:
            self._transition(PipelineState.DISPATCHING)
            sink.start()
            pool.start()
            for point in table:
                self._dispatch(work, point, pool, sink)
            work.close()

            self._transition(PipelineState.DRAINING)
            pool.wait(poll_interval=cfg.poll_interval, abort_check=sink.check)
            results.close()

            self._transition(PipelineState.FLUSHING)
            sink.join()
        except Exception:
            self._transition(PipelineState.ABORTED)
            sink.abort()
            pool.terminate()
            raise

        self._transition(PipelineState.DONE)
        return PipelineReport(
            points=len(table),
            workers=n_workers,
            rows_written=sink.rows_written,
            batches=sink.batches,
            elapsed_s=time.perf_counter() - started,
            state=self.state,
        )

    def _dispatch(self, work: WorkQueue, point, pool: WorkerPool, sink: ResultSink):
        # keep watching for failures while the work queue applies backpressure
        while True:
            try:
                work.put(point, timeout=self.config.poll_interval)
                return
            except queue.Full:
                pool.check()
                sink.check()
