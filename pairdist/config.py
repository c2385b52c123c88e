"""
Pipeline configuration.

Tunables for pool sizing, batching and queue bounds. Defaults reproduce the
reference behaviour: four workers per CPU, 2000-row batches, a 100-slot
result buffer and a work queue large enough that dispatch never blocks.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .conduits import QueueBackend
from .distance import EARTH_RADIUS

DEFAULT_BATCH_SIZE: int = 2000
DEFAULT_RESULT_BUFFER: int = 100
DEFAULT_WORKER_MULTIPLIER: int = 4
DEFAULT_PRECISION: int = 3


@dataclass
class PipelineConfig:
    """Tunables for one pipeline run."""
    worker_count: int | None = None          # explicit pool size; overrides the multiplier
    worker_multiplier: int = DEFAULT_WORKER_MULTIPLIER
    batch_size: int = DEFAULT_BATCH_SIZE
    result_buffer: int = DEFAULT_RESULT_BUFFER
    work_queue_size: int | None = None       # None -> one slot per point
    unit: str = "mi"
    precision: int = DEFAULT_PRECISION
    backend: QueueBackend = QueueBackend.THREAD
    half_matrix: bool = False
    poll_interval: float = 0.1

    def __post_init__(self):
        if isinstance(self.backend, str):
            self.backend = QueueBackend(self.backend)
        if self.worker_count is not None and self.worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.worker_multiplier < 1:
            raise ValueError(f"worker_multiplier must be >= 1, got {self.worker_multiplier}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.result_buffer < 1:
            raise ValueError(f"result_buffer must be >= 1, got {self.result_buffer}")
        if self.work_queue_size is not None and self.work_queue_size < 1:
            raise ValueError(f"work_queue_size must be >= 1, got {self.work_queue_size}")
        if self.unit not in EARTH_RADIUS:
            raise ValueError(f"unit must be one of {sorted(EARTH_RADIUS)}, got '{self.unit}'")
        if self.precision < 0:
            raise ValueError(f"precision must be >= 0, got {self.precision}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")

    def resolve_worker_count(self) -> int:
        """Effective pool size: explicit count, else multiplier x CPU count."""
        if self.worker_count is not None:
            return self.worker_count
        return self.worker_multiplier * (os.cpu_count() or 1)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["backend"] = self.backend.value
        return data
