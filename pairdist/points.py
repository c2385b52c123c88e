"""
Labelled coordinates and the immutable table the workers share.

Input format
------------
A comma-separated file whose header row is discarded. The first three
columns are read positionally as label, latitude and longitude (degrees);
any further columns are ignored. Labels are kept as strings so postal codes
keep their leading zeros.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np
import pandas as pd

from .errors import InputReadError

LAT_LIMIT: float = 90.0
LNG_LIMIT: float = 180.0


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Point:
    label: str
    lat: float
    lng: float

    @property
    def coordinate(self) -> tuple[float, float]:
        return self.lat, self.lng


class PointTable:
    """
    Ordered, read-only sequence of Points.

    Coordinates are mirrored into read-only numpy columns so a worker can
    evaluate one source against the whole table in a single vectorised call.
    Label uniqueness is assumed, not checked.
    """

    def __init__(self, points: Iterable[Point]):
        self.points: tuple[Point, ...] = tuple(points)
        self.lats = np.array([p.lat for p in self.points], dtype=np.float64)
        self.lngs = np.array([p.lng for p in self.points], dtype=np.float64)
        self.lats.flags.writeable = False
        self.lngs.flags.writeable = False
        self._positions = {p.label: i for i, p in enumerate(self.points)}

    @classmethod
    def from_records(cls, records: Iterable[tuple[str, float, float]]) -> "PointTable":
        """Build a table from (label, lat, lng) tuples."""
        return cls(Point(str(label), float(lat), float(lng)) for label, lat, lng in records)

    def position(self, label: str) -> int:
        """Index of the point labelled *label*."""
        return self._positions[label]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __getitem__(self, index: int) -> Point:
        return self.points[index]

    def __repr__(self) -> str:
        return f"PointTable(n={len(self.points)})"


# ---------------------------------------------------------------------------
# CSV loading
# ---------------------------------------------------------------------------
def _parse_coordinates(column: pd.Series, name: str, limit: float, path: str) -> pd.Series:
    try:
        values = pd.to_numeric(column, errors="raise")
    except (TypeError, ValueError) as exc:
        raise InputReadError(f"{path}: non-numeric {name} value ({exc})") from exc

    if values.isna().any():
        row = int(values.index[values.isna()][0]) + 2   # 1-based, plus header
        raise InputReadError(f"{path}: missing {name} on line {row}")
    if (values.abs() > limit).any():
        row = int(values.index[values.abs() > limit][0]) + 2
        raise InputReadError(f"{path}: {name} out of range on line {row}")
    return values.astype(np.float64)


def load_points(path: str) -> PointTable:
    """
    Read *path* into a PointTable.

    Raises InputReadError when the file cannot be read or does not hold at
    least three columns of label / latitude / longitude.
    """
    # header=None: the header row fixes the field count, so a data row with
    # extra fields is a parse error instead of a silently shifted index
    try:
        df = pd.read_csv(
            path, header=None, dtype=str, keep_default_na=False, skipinitialspace=True
        )
    except pd.errors.EmptyDataError as exc:
        raise InputReadError(f"{path}: file is empty") from exc
    except (OSError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise InputReadError(f"{path}: {exc}") from exc
    df = df.iloc[1:].reset_index(drop=True)

    if df.shape[1] < 3:
        raise InputReadError(
            f"{path}: expected at least 3 columns (label, latitude, longitude), "
            f"found {df.shape[1]}"
        )

    labels = df.iloc[:, 0]
    lats = _parse_coordinates(df.iloc[:, 1], "latitude", LAT_LIMIT, path)
    lngs = _parse_coordinates(df.iloc[:, 2], "longitude", LNG_LIMIT, path)

    return PointTable.from_records(zip(labels, lats, lngs))
