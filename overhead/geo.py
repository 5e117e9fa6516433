"""
Great-circle distance and radius filtering.

The API is queried with a rectangular bounding box, which over-selects
at the corners. The Haversine filter here trims the result to the
actual circle around the user.
"""

import math
from typing import List, Sequence

import numpy as np

from overhead.models import Flight

EARTH_RADIUS_KM = 6371.0

# Scalar and vectorised forms can differ in the last few bits
BOUNDARY_TOLERANCE_KM = 1e-9


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points in kilometers.

    Uses the Haversine formula for accuracy over short to medium distances.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distances(
    lat: float, lon: float,
    lats: Sequence[float], lons: Sequence[float],
) -> np.ndarray:
    """Vectorized haversine_distance from one point to many."""
    lats_rad = np.radians(np.asarray(lats, dtype=float))
    lons_rad = np.radians(np.asarray(lons, dtype=float))
    lat_rad = math.radians(lat)

    delta_lat = lats_rad - lat_rad
    delta_lon = lons_rad - math.radians(lon)

    a = (
        np.sin(delta_lat / 2) ** 2 +
        math.cos(lat_rad) * np.cos(lats_rad) *
        np.sin(delta_lon / 2) ** 2
    )
    # Rounding can push a a hair past 1 for antipodal points
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def filter_by_radius(
    flights: List[Flight],
    center_lat: float,
    center_lon: float,
    radius_km: float,
) -> List[Flight]:
    """
    Keep flights within radius_km (inclusive) of the center.

    Flights without a position are dropped. Kept flights get their
    distance_km set. Input order is preserved.
    """
    if radius_km <= 0:
        return []

    positioned = [f for f in flights if f.has_position()]
    if not positioned:
        return []

    distances = haversine_distances(
        center_lat, center_lon,
        [f.latitude for f in positioned],
        [f.longitude for f in positioned],
    )

    result = []
    for flight, distance in zip(positioned, distances):
        if distance <= radius_km + BOUNDARY_TOLERANCE_KM:
            flight.distance_km = round(float(distance), 3)
            result.append(flight)

    return result
