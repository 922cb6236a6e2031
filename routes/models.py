"""
Purpose: Domain models for the Routes capability.
What it does:
- Defines core data structures:
- Coordinate (lat, lng)
- Waypoint (coordinate + derived label/order, never stored)
- Route (id, name, geometry, metrics, trek metadata, created_at)
- RouteMetadata (form fields for a create)
- RouteChanges (partial update, None = leave unchanged)

Defines enums/constants:
- Difficulty = EASY | MODERATE | HARD | VERY_HARD | EXTREME

Rule: No HTTP calls, no store logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence, Tuple

# Default reserved prefix for ids that never touched the server.
LOCAL_ID_PREFIX = "local-"

# Stored routes without a region are edited under this placeholder.
UNKNOWN_REGION = "Unknown"


class Difficulty(str, Enum):
    """
    Difficulty levels accepted by the route service.
    The wire value equals the member name.
    """
    EASY = "EASY"
    MODERATE = "MODERATE"
    HARD = "HARD"
    VERY_HARD = "VERY_HARD"
    EXTREME = "EXTREME"

    @classmethod
    def parse(cls, value: str | Difficulty | None) -> Optional[Difficulty]:
        if value is None or isinstance(value, Difficulty):
            return value
        if not isinstance(value, str):
            raise ValueError(f"{value!r} is not a valid Difficulty")
        return cls(value.strip().upper())


@dataclass(frozen=True)
class Coordinate:
    """
    A single map point. Only meaningful inside a sequence.
    """
    lat: float
    lng: float

    @classmethod
    def of(cls, lat: float, lng: float) -> Coordinate:
        return cls(lat=float(lat), lng=float(lng))


@dataclass(frozen=True)
class Waypoint:
    """
    A geometry coordinate with its display label.
    Built by build_waypoints() from the current order of a sequence.
    """
    lat: float
    lng: float
    name: str
    order: int

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


def waypoint_label(index: int, count: int) -> str:
    if index == 0:
        return "Start"
    if index == count - 1:
        return "End"
    return f"Point {index + 1}"


def build_waypoints(points: Sequence[Coordinate]) -> List[Waypoint]:
    """
    Start / Point N / End labels for a point sequence, recomputed on every call.
    """
    count = len(points)
    return [
        Waypoint(lat=point.lat, lng=point.lng, name=waypoint_label(index, count), order=index)
        for index, point in enumerate(points)
    ]


def is_local_id(route_id: str, prefix: str = LOCAL_ID_PREFIX) -> bool:
    return bool(route_id) and route_id.startswith(prefix)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Route:
    """
    A saved route (either server-backed or local-only).

    Immutable: the coordinator replaces a Route as a whole on update so that
    distance_m / duration_s always travel together with the geometry they
    were computed from.
    """
    id: str
    name: str
    geometry: Tuple[Coordinate, ...]
    distance_m: float
    duration_s: float
    difficulty: Optional[Difficulty] = None

    region: Optional[str] = None
    trek_name: Optional[str] = None
    min_altitude: Optional[int] = None
    max_altitude: Optional[int] = None
    description: Optional[str] = None
    duration_days: Optional[int] = None

    created_at: datetime = field(default_factory=_utcnow)
    is_active: bool = True
    local_id_prefix: str = field(default=LOCAL_ID_PREFIX, repr=False, compare=False)

    def __post_init__(self):
        # accept any sequence but store a tuple so the route stays hashable/immutable
        object.__setattr__(self, "geometry", tuple(self.geometry))
        if len(self.geometry) < 2:
            raise ValueError(f"Route {self.id!r} needs at least 2 geometry points, got {len(self.geometry)}")

    @property
    def is_local(self) -> bool:
        return is_local_id(self.id, self.local_id_prefix)

    @property
    def waypoints(self) -> List[Waypoint]:
        return build_waypoints(self.geometry)

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0

    @property
    def origin(self) -> Coordinate:
        return self.geometry[0]

    @property
    def destination(self) -> Coordinate:
        return self.geometry[-1]


@dataclass(frozen=True)
class RouteMetadata:
    """
    Form fields collected when a drawn or imported route is saved.
    distance_km is an explicit override; when None the distance comes from geometry.
    """
    name: str
    region: str
    min_altitude: int
    max_altitude: int
    difficulty: Optional[Difficulty] = Difficulty.MODERATE

    description: Optional[str] = None
    trek_name: Optional[str] = None
    duration_days: Optional[int] = None
    distance_km: Optional[float] = None

    @classmethod
    def from_route(cls, route: Route) -> RouteMetadata:
        return cls(
            name=route.name,
            region=route.region or UNKNOWN_REGION,
            min_altitude=route.min_altitude if route.min_altitude is not None else 0,
            max_altitude=route.max_altitude if route.max_altitude is not None else 0,
            difficulty=route.difficulty,
            description=route.description,
            trek_name=route.trek_name,
            duration_days=route.duration_days,
        )

    def cleaned(self) -> RouteMetadata:
        """
        Trim free-text fields; blank optional text becomes None.
        """
        def _opt(text: Optional[str]) -> Optional[str]:
            if text is None:
                return None
            return text.strip() or None

        return RouteMetadata(
            name=(self.name or "").strip(),
            region=(self.region or "").strip(),
            min_altitude=self.min_altitude,
            max_altitude=self.max_altitude,
            difficulty=Difficulty.parse(self.difficulty),
            description=_opt(self.description),
            trek_name=_opt(self.trek_name),
            duration_days=self.duration_days,
            distance_km=self.distance_km,
        )


@dataclass(frozen=True)
class RouteChanges:
    """
    Partial update. Every field left as None keeps the existing value.
    """
    name: Optional[str] = None
    region: Optional[str] = None
    min_altitude: Optional[int] = None
    max_altitude: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    description: Optional[str] = None
    trek_name: Optional[str] = None
    duration_days: Optional[int] = None
    distance_km: Optional[float] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def apply_to(self, metadata: RouteMetadata) -> RouteMetadata:
        merged = {f.name: getattr(metadata, f.name) for f in fields(metadata)}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                merged[f.name] = value
        return RouteMetadata(**merged)
