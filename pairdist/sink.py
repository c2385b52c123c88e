"""
Result sink: the single consumer of the result conduit.

Self-pairs are dropped, the remaining results are formatted and buffered,
and every ``batch_size`` rows the buffer is flushed to the output writer as
one write. A non-empty remainder is flushed when the conduit closes. Row
order follows arrival order, which interleaves the workers and is therefore
not reproducible between runs.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Protocol

import pandas as pd

from .conduits import ResultConduit
from .errors import OutputWriteError

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ["source", "dest", "distance"]

Row = tuple[str, str, str]


class BatchWriter(Protocol):
    def open(self) -> None: ...
    def write_batch(self, rows: list[Row]) -> None: ...
    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# CSV output
# ---------------------------------------------------------------------------
class CsvBatchWriter:
    """Appends batches of rows to a headerless CSV file."""

    def __init__(self, path: str):
        self.path = path
        self._fh = None

    def open(self):
        """Create (or truncate) the output file."""
        try:
            self._fh = open(self.path, "w", newline="", encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(f"cannot create {self.path}: {exc}") from exc

    def write_batch(self, rows: list[Row]):
        if self._fh is None:
            raise OutputWriteError(f"{self.path} is not open")
        try:
            pd.DataFrame(rows, columns=OUTPUT_COLUMNS).to_csv(self._fh, header=False, index=False)
        except OSError as exc:
            raise OutputWriteError(f"write to {self.path} failed: {exc}") from exc

    def close(self):
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as exc:
            raise OutputWriteError(f"closing {self.path} failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------
class ResultSink:
    """
    Drains a ResultConduit into a BatchWriter on a background thread.

    The sink owns the writer: it opens it in ``start()`` and releases it when
    the drain ends. A write failure is recorded rather than raised on the
    sink thread; the sink then keeps draining (discarding) so no worker
    blocks on a full conduit, and ``check()`` / ``join()`` re-raise the
    failure in the coordinator.
    """

    def __init__(
        self,
        results: ResultConduit,
        writer: BatchWriter,
        batch_size: int = 2000,
        precision: int = 3,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.results = results
        self.writer = writer
        self.batch_size = batch_size
        self.precision = precision
        self.rows_written = 0
        self.batches = 0
        self.error: Exception | None = None
        self._thread: threading.Thread | None = None
        self._aborted = threading.Event()

    def start(self):
        self.writer.open()
        self._thread = threading.Thread(target=self._drain, name="result-sink", daemon=True)
        self._thread.start()

    def _flush(self, buffer: list[Row]):
        self.writer.write_batch(buffer)
        self.rows_written += len(buffer)
        self.batches += 1
        logger.debug(f"Flushed batch {self.batches} ({len(buffer)} rows, {self.rows_written} total)")

    def _drain(self):
        buffer: list[Row] = []
        drained = False
        try:
            for result in self.results:
                if self._aborted.is_set() or result.source == result.dest:
                    continue
                buffer.append(result.to_row(self.precision))
                if len(buffer) >= self.batch_size:
                    self._flush(buffer)
                    buffer = []
            drained = True
            if buffer and not self._aborted.is_set():
                self._flush(buffer)
            self.writer.close()
        except Exception as exc:
            logger.error(f"Result sink aborted after {self.rows_written} rows: {exc}")
            self.error = exc
            # the write already failed; releasing the handle may fail too
            with contextlib.suppress(OutputWriteError):
                self.writer.close()
            if not drained:
                for _ in self.results:
                    pass

    def check(self):
        """Re-raise a recorded sink failure, if any."""
        if self.error is not None:
            raise self.error

    def join(self):
        """Wait for the final flush and surface any failure."""
        if self._thread is not None:
            self._thread.join()
        self.check()

    def abort(self):
        """
        Stop writing and release the writer after a pipeline failure.

        Results still queued are discarded, including a pending partial
        batch; rows already flushed stay on disk.
        """
        self._aborted.set()
        self.results.close()
        if self._thread is not None:
            self._thread.join()
