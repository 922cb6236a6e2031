"""
Purpose: Conversion between in-memory routes and the route service's JSON shapes.

Wire positions are [longitude, latitude]; in memory they are Coordinate(lat, lng).
Every crossing in either direction goes through to_wire_coordinates /
from_wire_coordinates.

RouteRecord  <- server responses (detail endpoint, create/update results)
RouteRequest -> create (POST) / full update (PUT) bodies
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from geo.geometry import distance_meters, estimated_duration_seconds
from routes.models import Coordinate, Difficulty, Route, RouteMetadata
from routes.policy import EditorPolicy

logger = logging.getLogger(__name__)

WirePosition = List[float]  # [lng, lat]


def to_wire_coordinates(points: Sequence[Coordinate]) -> List[WirePosition]:
    return [[point.lng, point.lat] for point in points]


def from_wire_coordinates(positions: Optional[Sequence[Sequence[float]]]) -> List[Coordinate]:
    if not positions:
        return []
    return [Coordinate.of(position[1], position[0]) for position in positions]


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    # Python < 3.11 does not accept the trailing Z
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class RouteRecord:
    """
    A route as the server returns it (camelCase keys on the wire).
    """
    id: str
    name: str
    region: Optional[str] = None
    min_altitude: Optional[int] = None
    max_altitude: Optional[int] = None
    difficulty_level: Optional[str] = None
    distance_km: Optional[float] = None
    geometry_coordinates: List[WirePosition] = field(default_factory=list)
    description: Optional[str] = None
    trek_name: Optional[str] = None
    duration_days: Optional[int] = None
    is_active: bool = True
    created_at: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> RouteRecord:
        if not isinstance(data, dict) or "id" not in data:
            raise ValueError("Route record must be an object with an 'id'")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            region=data.get("region"),
            min_altitude=data.get("minAltitude"),
            max_altitude=data.get("maxAltitude"),
            difficulty_level=data.get("difficultyLevel"),
            distance_km=data.get("distanceKm"),
            geometry_coordinates=list(data.get("geometryCoordinates") or []),
            description=data.get("description"),
            trek_name=data.get("trekName"),
            duration_days=data.get("durationDays"),
            is_active=data.get("isActive", True),
            created_at=data.get("createdAt"),
        )

    @property
    def has_geometry(self) -> bool:
        return len(self.geometry_coordinates) >= 2


@dataclass(frozen=True)
class RouteRequest:
    """
    Body for POST /api/admin/routes and PUT /api/admin/routes/{id}.
    """
    name: str
    region: str
    min_altitude: int
    max_altitude: int
    difficulty_level: str
    geometry_coordinates: List[WirePosition]
    distance_km: float
    is_active: bool = True
    description: Optional[str] = None
    trek_name: Optional[str] = None
    duration_days: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": self.name,
            "region": self.region,
            "minAltitude": self.min_altitude,
            "maxAltitude": self.max_altitude,
            "difficultyLevel": self.difficulty_level,
            "geometryCoordinates": self.geometry_coordinates,
            "distanceKm": self.distance_km,
            "isActive": self.is_active,
        }
        # optional keys are omitted rather than sent as null
        if self.description is not None:
            body["description"] = self.description
        if self.trek_name is not None:
            body["trekName"] = self.trek_name
        if self.duration_days is not None:
            body["durationDays"] = self.duration_days
        return body


def build_route_request(points: Sequence[Coordinate], metadata: RouteMetadata, distance_m: float) -> RouteRequest:
    return RouteRequest(
        name=metadata.name,
        region=metadata.region,
        min_altitude=metadata.min_altitude,
        max_altitude=metadata.max_altitude,
        difficulty_level=metadata.difficulty.value,
        geometry_coordinates=to_wire_coordinates(points),
        distance_km=round(distance_m / 1000.0, 3),
        description=metadata.description,
        trek_name=metadata.trek_name,
        duration_days=metadata.duration_days,
    )


def _record_difficulty(record: RouteRecord) -> Optional[Difficulty]:
    # the server owns the level list; a level unknown here is left unset
    try:
        return Difficulty.parse(record.difficulty_level)
    except ValueError:
        logger.warning(f"Route {record.id} has unknown difficulty {record.difficulty_level!r}, leaving it unset")
        return None


def record_to_route(record: RouteRecord, policy: EditorPolicy) -> Route:
    """
    Convert a server record into a Route.

    The server's distanceKm wins when present, otherwise distance comes from the
    geometry. Duration is always the distance heuristic; durationDays stays
    separate user metadata. An unknown difficultyLevel is logged and left unset.
    Raises ValueError for records with < 2 points.
    """
    geometry = from_wire_coordinates(record.geometry_coordinates)

    if record.distance_km:
        distance_m = float(record.distance_km) * 1000.0
    else:
        distance_m = distance_meters(geometry, policy.earth_radius_m)

    return Route(
        id=record.id,
        name=record.name,
        geometry=geometry,
        distance_m=distance_m,
        duration_s=estimated_duration_seconds(distance_m, policy.seconds_per_km),
        difficulty=_record_difficulty(record),
        region=record.region,
        trek_name=record.trek_name,
        min_altitude=record.min_altitude,
        max_altitude=record.max_altitude,
        description=record.description,
        duration_days=record.duration_days,
        created_at=_parse_timestamp(record.created_at),
        is_active=record.is_active,
        local_id_prefix=policy.local_id_prefix,
    )
