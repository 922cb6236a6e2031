"""
Routes domain package.

Public API:
- Domain models: Coordinate, Waypoint, Route, RouteMetadata, RouteChanges, Difficulty
- Collection: RouteCollectionStore
- Configuration: EditorPolicy, default_policy
- Local search: filter_routes
"""
from .models import (
    Coordinate,
    Waypoint,
    Route,
    RouteMetadata,
    RouteChanges,
    Difficulty,
    LOCAL_ID_PREFIX,
    build_waypoints,
    is_local_id,
)
from .policy import EditorPolicy, default_policy, open_policy
from .store import RouteCollectionStore
from .search import filter_routes

__all__ = ["Coordinate",
           "Waypoint",
           "Route",
           "RouteMetadata",
           "RouteChanges",
           "Difficulty",
           "LOCAL_ID_PREFIX",
           "build_waypoints",
           "is_local_id",
           "EditorPolicy",
           "default_policy",
           "open_policy",
           "RouteCollectionStore",
           "filter_routes",
           ]
