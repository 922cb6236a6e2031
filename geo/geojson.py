#Purpose: GeoJSON boundary for the editor.
#Import: flatten whatever geometry a user pastes or uploads into the
#in-memory (lat, lng) points an EditBuffer can be seeded with.
#Export: turn saved routes into LineString features for other map tools.
#GeoJSON positions are [lng, lat(, alt)]; conversion happens here and only here.

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Union

from routes.models import Coordinate, Route


class GeoJSONError(ValueError):
    """Raised when GeoJSON input cannot be parsed."""
    pass


def _position(position: Any) -> Coordinate:
    # extra members (altitude) are ignored
    lng, lat = position[0], position[1]
    return Coordinate.of(lat, lng)


def _flatten(geometry: Dict[str, Any], out: List[Coordinate]) -> None:
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if not coordinates:
        return

    if geom_type == "Point":
        out.append(_position(coordinates))
    elif geom_type == "LineString":
        out.extend(_position(p) for p in coordinates)
    elif geom_type in ("MultiLineString", "Polygon"):
        for line in coordinates:
            out.extend(_position(p) for p in line)
    elif geom_type == "MultiPolygon":
        for polygon in coordinates:
            for ring in polygon:
                out.extend(_position(p) for p in ring)


def extract_coordinates(geojson: Union[str, Dict[str, Any]]) -> List[Coordinate]:
    """
    Collect every position from a FeatureCollection, a Feature or a bare geometry,
    in document order.

    Args:
        geojson: parsed dict or raw JSON text

    Returns:
        List[Coordinate] (may be empty when nothing usable was found)
    """
    if isinstance(geojson, str):
        try:
            geojson = json.loads(geojson)
        except json.JSONDecodeError as e:
            raise GeoJSONError(f"Invalid JSON: {e.msg}") from e

    coords: List[Coordinate] = []
    if not isinstance(geojson, dict):
        return coords

    try:
        if geojson.get("type") == "FeatureCollection" and isinstance(geojson.get("features"), list):
            for feature in geojson["features"]:
                if isinstance(feature, dict) and feature.get("geometry"):
                    _flatten(feature["geometry"], coords)
        elif geojson.get("type") == "Feature" and geojson.get("geometry"):
            _flatten(geojson["geometry"], coords)
        elif geojson.get("type") and geojson.get("coordinates"):
            _flatten(geojson, coords)
    except (TypeError, IndexError, ValueError) as e:
        raise GeoJSONError(f"Malformed coordinates: {e}") from e

    return coords


def route_to_feature(route: Route) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [[point.lng, point.lat] for point in route.geometry],
        },
        "properties": {
            "id": route.id,
            "routeName": route.name,
            "distance": route.distance_m,
            "duration": route.duration_s,
            "difficultyLevel": route.difficulty.value if route.difficulty else None,
            "region": route.region,
            "trekName": route.trek_name,
            "minAltitude": route.min_altitude,
            "maxAltitude": route.max_altitude,
            "durationDays": route.duration_days,
            "description": route.description,
            "isLocal": route.is_local,
            "createdAt": route.created_at.isoformat(),
        },
    }


def routes_to_feature_collection(routes: Iterable[Route]) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [route_to_feature(route) for route in routes],
    }
