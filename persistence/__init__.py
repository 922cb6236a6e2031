#Marks persistence as a package.
#Re-exports the coordinator, the collaborator contracts, the error taxonomy and
#the HTTP adapter so callers import from persistence without knowing file names.
#No business logic.

from .collaborators import (
    RemoteResult,
    RemoteRouteService,
    AuthGate,
    Notifier,
    Severity,
    StaticAuthGate,
    LoggingNotifier,
)
from .errors import (
    PersistenceError,
    ValidationError,
    AuthRequired,
    SessionExpired,
    RemoteFailure,
    classify_remote_failure,
    is_auth_failure,
)
from .wire import RouteRecord, RouteRequest, to_wire_coordinates, from_wire_coordinates
from .coordinator import PersistenceCoordinator, PersistenceOutcome
from .route_client import HttpRouteService

__all__ = [
    "RemoteResult",
    "RemoteRouteService",
    "AuthGate",
    "Notifier",
    "Severity",
    "StaticAuthGate",
    "LoggingNotifier",
    "PersistenceError",
    "ValidationError",
    "AuthRequired",
    "SessionExpired",
    "RemoteFailure",
    "classify_remote_failure",
    "is_auth_failure",
    "RouteRecord",
    "RouteRequest",
    "to_wire_coordinates",
    "from_wire_coordinates",
    "PersistenceCoordinator",
    "PersistenceOutcome",
    "HttpRouteService",
]
