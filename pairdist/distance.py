"""Haversine distance utilities."""

from __future__ import annotations

import numpy as np

EARTH_RADIUS_KM: float = 6371.0
KM_PER_MILE: float = 1.609344

# Mean Earth radius per output unit.
EARTH_RADIUS: dict[str, float] = {
    "mi": EARTH_RADIUS_KM / KM_PER_MILE,
    "km": EARTH_RADIUS_KM,
}


def earth_radius(unit: str) -> float:
    """Return the mean Earth radius expressed in *unit*."""
    try:
        return EARTH_RADIUS[unit]
    except KeyError:
        raise ValueError(
            f"Unknown distance unit '{unit}'. Choose one of: {', '.join(EARTH_RADIUS)}."
        ) from None


def haversine(lat1, lng1, lat2, lng2, unit: str = "mi"):
    """
    Return the great-circle distance between (lat1, lng1) and (lat2, lng2).

    Coordinates are in degrees and may be scalars or numpy arrays; arrays
    broadcast, so one source against a column of destinations yields one
    distance per destination.
    """
    radius = earth_radius(unit)
    lat1, lng1, lat2, lng2 = map(np.radians, [lat1, lng1, lat2, lng2])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    # rounding can push sqrt(a) a hair above 1 for antipodal points
    return radius * 2 * np.arcsin(np.minimum(1.0, np.sqrt(a)))


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return great-circle distance in miles between two (lat, lng) points."""
    return float(haversine(lat1, lng1, lat2, lng2, unit="mi"))
