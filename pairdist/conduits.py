"""
Bounded conduits between the coordinator, the workers and the result sink.

Both conduits follow close-and-drain semantics: after ``close()`` no further
items may be pushed, consumers keep receiving whatever is still queued, and
iteration ends once the close marker is reached. Closing is done by pushing
one marker per consumer, so each consumer sees end-of-stream exactly once.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import threading
from enum import Enum
from typing import Any, Iterator

logger = logging.getLogger(__name__)

# Close marker; survives pickling through multiprocessing queues.
_CLOSED = None


class QueueBackend(Enum):
    """Execution backend for the worker pool and its queues."""
    THREAD = "thread"
    PROCESS = "process"


def make_queue(backend: QueueBackend, maxsize: int = 0):
    """Create a queue suitable for *backend* (0 means unbounded)."""
    if backend == QueueBackend.PROCESS:
        return mp.Queue(maxsize=maxsize)
    if backend == QueueBackend.THREAD:
        return queue.Queue(maxsize=maxsize)
    raise ValueError(f"Unsupported queue backend: {backend}")


def make_slots(backend: QueueBackend, maxsize: int):
    """Counting semaphore that bounds the payloads in flight for *backend*."""
    if backend == QueueBackend.PROCESS:
        return mp.BoundedSemaphore(maxsize)
    return threading.BoundedSemaphore(maxsize)


class _ClosableQueue:
    def __init__(self, name: str, consumers: int, maxsize: int, backend: QueueBackend):
        self.name = name
        self.consumers = consumers
        self.maxsize = maxsize
        # the bound applies to payloads only; close markers never wait for a slot
        self._queue = make_queue(backend)
        self._slots = make_slots(backend, maxsize) if maxsize > 0 else None
        self._closed = False
        logger.debug(
            f"Initialized {backend.value} conduit: {name} "
            f"(maxsize={maxsize or 'unbounded'}, consumers={consumers})"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: Any, timeout: float | None = None):
        """Push *item*; blocks while full. Raises queue.Full on timeout."""
        if self._closed:
            raise RuntimeError(f"put() on closed conduit '{self.name}'")
        if self._slots is not None and not self._slots.acquire(timeout=timeout):
            raise queue.Full
        self._queue.put(item)

    def close(self):
        """Signal end-of-stream to every consumer. Idempotent, never blocks."""
        if self._closed:
            return
        self._closed = True
        for _ in range(self.consumers):
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[Any]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            if self._slots is not None:
                self._slots.release()
            yield item


class WorkQueue(_ClosableQueue):
    """Carries source Points to whichever worker is free."""

    def __init__(self, consumers: int, maxsize: int = 0, backend: QueueBackend = QueueBackend.THREAD):
        super().__init__("work", consumers, maxsize, backend)


class ResultConduit(_ClosableQueue):
    """Carries DistanceResults from all workers to the single result sink."""

    def __init__(self, maxsize: int = 100, backend: QueueBackend = QueueBackend.THREAD):
        super().__init__("results", 1, maxsize, backend)
