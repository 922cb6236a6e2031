#Marks geo as a package.
#Re-exports the geometry helpers and GeoJSON conversions so other modules
#import from geo without knowing internal file names.
#No editor state here.

from .geometry import (
    segment_distance_m,
    distance_meters,
    estimated_duration_seconds,
    midpoint,
    format_distance,
    format_duration,
)
from .geojson import GeoJSONError, extract_coordinates, route_to_feature, routes_to_feature_collection

__all__ = [
    "segment_distance_m",
    "distance_meters",
    "estimated_duration_seconds",
    "midpoint",
    "format_distance",
    "format_duration",
    "GeoJSONError",
    "extract_coordinates",
    "route_to_feature",
    "routes_to_feature_collection",
]
