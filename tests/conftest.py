import csv

import pytest

from pairdist.errors import OutputWriteError
from pairdist.points import PointTable


class RecordingWriter:
    """In-memory BatchWriter that remembers every batch it was given."""

    def __init__(self, fail_on_batch=None):
        self.batches = []
        self.opened = False
        self.closed = False
        self.fail_on_batch = fail_on_batch

    def open(self):
        self.opened = True

    def write_batch(self, rows):
        if self.fail_on_batch is not None and len(self.batches) + 1 == self.fail_on_batch:
            raise OutputWriteError("disk full")
        self.batches.append(list(rows))

    def close(self):
        self.closed = True

    @property
    def rows(self):
        return [row for batch in self.batches for row in batch]


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def grid_table():
    # 6 distinct points on a small lat/lng grid
    return PointTable.from_records(
        (f"P{i}{j}", 10.0 * i, 15.0 * j) for i in range(2) for j in range(3)
    )


def write_csv(path, rows, header=("zip", "lat", "lng")):
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        if header:
            w.writerow(header)
        w.writerows(rows)
    return str(path)


def read_csv(path):
    with open(path, newline="") as f:
        return [tuple(r) for r in csv.reader(f)]
