#Purpose: Pure geodesic math for drawn routes.
#Straight-line great-circle sums over the user's own points (no road graph).
#Typical responsibilities:
#haversine segment length
#polyline length (sum of consecutive segments)
#heuristic travel duration from distance
#display formatting for distance/duration
#It should not know about stores, buffers or the remote service.

from __future__ import annotations

import math
from typing import Sequence, Tuple

from routes.models import Coordinate

EARTH_RADIUS_M = 6371000.0

# 50 km/h average speed -> 72 seconds per kilometre
SECONDS_PER_KM = 72.0


def segment_distance_m(a: Coordinate, b: Coordinate, radius_m: float = EARTH_RADIUS_M) -> float:
    """
    Great-circle distance between two coordinates using the haversine formula.
    Symmetric: segment_distance_m(a, b) == segment_distance_m(b, a).
    """
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlmb = math.radians(b.lng - a.lng)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # clamp rounding noise so asin never sees a value above 1
    return 2 * radius_m * math.asin(math.sqrt(min(1.0, s)))


def distance_meters(points: Sequence[Coordinate], radius_m: float = EARTH_RADIUS_M) -> float:
    """
    Sum of consecutive segment lengths in metres. 0 for fewer than two points.
    """
    total = 0.0
    for i in range(1, len(points)):
        total += segment_distance_m(points[i - 1], points[i], radius_m)
    return total


def estimated_duration_seconds(distance_m: float, seconds_per_km: float = SECONDS_PER_KM) -> float:
    """
    Heuristic travel time: (distance_m / 1000) * 72.
    Placeholder only, it is not measured travel time and ignores duration_days.
    """
    return (distance_m / 1000.0) * seconds_per_km


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    return Coordinate(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def _split_hours_minutes(seconds: float) -> Tuple[int, int]:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return hours, minutes


def format_duration(seconds: float) -> str:
    hours, minutes = _split_hours_minutes(seconds)
    if hours > 0:
        return f"{hours}h {minutes}min"
    return f"{minutes} min"
