"""
Purpose: Persistence policy engine (the "glue").
What it does:
Takes a committed EditBuffer snapshot + form metadata and decides how a
create/update/delete is carried out:
- local only (signed out, no role, or a local-id route), or
- through the remote route service (signed in with the required role).

Every public operation ends in exactly one Notifier call and returns a
PersistenceOutcome; failures are classified (validation, auth, expired
session, remote) and never re-thrown past this layer.

Overlapping saves on the same route id are not serialized: results are
applied in the order they complete (last one wins).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple

from editing.buffer import BufferMode, EditBuffer
from geo.geometry import distance_meters, estimated_duration_seconds
from routes.models import Coordinate, Route, RouteChanges, RouteMetadata, is_local_id
from routes.policy import EditorPolicy, default_policy
from routes.store import RouteCollectionStore

from .collaborators import AuthGate, Notifier, RemoteResult, RemoteRouteService, Severity
from .errors import (
    AuthRequired,
    PersistenceError,
    RemoteFailure,
    ValidationError,
    classify_remote_failure,
)
from .wire import RouteRecord, build_route_request, record_to_route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistenceOutcome:
    """
    Result of one coordinator operation. Truthy on success.
    """
    success: bool
    route: Optional[Route] = None
    error: Optional[PersistenceError] = None
    saved_remotely: bool = False

    def __bool__(self) -> bool:
        return self.success


class PersistenceCoordinator:
    """
    Coordinates saving routes with graceful degradation from server storage to
    local-only storage.
    """
    def __init__(self,
                 store: RouteCollectionStore,
                 remote: RemoteRouteService,
                 auth: AuthGate,
                 notifier: Notifier,
                 policy: Optional[EditorPolicy] = None):
        self.store = store
        self.remote = remote
        self.auth = auth
        self.notifier = notifier
        self.policy = policy or default_policy()

    # ----------------
    # Public operations
    # ----------------

    def create(self, points: Sequence[Coordinate], metadata: RouteMetadata) -> PersistenceOutcome:
        """
        Save a newly drawn or imported route.

        1. Validate locally (no network on failure).
        2. Without remote access: build a local route, insert and select it.
        3. With remote access: create on the server, insert and select the result.
        """
        try:
            points, metadata = self._validated(points, metadata)

            if not self._has_remote_access():
                route = self._build_route(self._new_local_id(), points, metadata)
                self.store.upsert(route)
                self.store.select(route.id)
                logger.info(f"Route {route.id} saved locally ({len(points)} points)")
                self.notifier.notify(
                    "Route Saved Locally",
                    f'"{route.name}" has been saved locally. Sign in to save it to the server.',
                    Severity.INFO,
                )
                return PersistenceOutcome(True, route=route)

            distance_m = self._distance_for(points, metadata)
            request = build_route_request(points, metadata, distance_m)
            route = self._route_from_data(self._call_remote("create", lambda: self.remote.create(request)))

            self.store.upsert(route)
            self.store.select(route.id)
            logger.info(f"Route {route.id} created on the server")
            self.notifier.notify("Route Created", f'"{route.name}" has been saved to the server.', Severity.INFO)
            return PersistenceOutcome(True, route=route, saved_remotely=True)

        except PersistenceError as e:
            return self._fail("create", e)

    def update(self,
               route_id: str,
               points: Optional[Sequence[Coordinate]] = None,
               changes: Optional[RouteChanges] = None) -> PersistenceOutcome:
        """
        Replace a route's geometry and/or metadata.

        points=None keeps the stored geometry; fields left None in `changes`
        keep their stored values. Local-id routes are edited in memory whatever
        the auth state; server routes need remote access.
        """
        try:
            existing = self.store.get(route_id)
            if existing is None:
                raise ValidationError(f"Route {route_id} not found")

            geometry = existing.geometry if points is None else points
            metadata = (changes or RouteChanges()).apply_to(RouteMetadata.from_route(existing))

            if is_local_id(route_id, self.policy.local_id_prefix):
                geometry, metadata = self._validated(geometry, metadata)
                route = self._build_route(
                    route_id,
                    geometry,
                    metadata,
                    created_at=existing.created_at,
                    is_active=existing.is_active,
                )
                self.store.upsert(route)
                self.store.select(route.id)
                logger.info(f"Local route {route_id} updated ({len(geometry)} points)")
                self.notifier.notify("Route Updated", f'"{route.name}" has been updated locally.', Severity.INFO)
                return PersistenceOutcome(True, route=route)

            self._require_remote_access()
            geometry, metadata = self._validated(geometry, metadata)

            distance_m = self._distance_for(geometry, metadata)
            request = build_route_request(geometry, metadata, distance_m)
            route = self._route_from_data(self._call_remote("update", lambda: self.remote.update(route_id, request)))

            self.store.upsert(route)
            self.store.select(route.id)
            logger.info(f"Route {route_id} updated on the server")
            self.notifier.notify("Route Updated", f'"{route.name}" has been saved to the server.', Severity.INFO)
            return PersistenceOutcome(True, route=route, saved_remotely=True)

        except PersistenceError as e:
            return self._fail("update", e)

    def delete(self, route_id: str) -> PersistenceOutcome:
        """
        Remove a route. Local-id routes are removed in memory only.
        """
        try:
            if is_local_id(route_id, self.policy.local_id_prefix):
                removed = self.store.remove(route_id)
                if removed is None:
                    raise ValidationError(f"Route {route_id} not found")
                logger.info(f"Local route {route_id} removed")
                self.notifier.notify("Route Deleted", f'"{removed.name}" has been removed locally.', Severity.INFO)
                return PersistenceOutcome(True, route=removed)

            self._require_remote_access()
            self._call_remote("delete", lambda: self.remote.delete(route_id))

            removed = self.store.remove(route_id)
            logger.info(f"Route {route_id} deleted on the server")
            name = removed.name if removed else route_id
            self.notifier.notify("Route Deleted", f'"{name}" has been deleted from the server.', Severity.INFO)
            return PersistenceOutcome(True, route=removed, saved_remotely=True)

        except PersistenceError as e:
            return self._fail("delete", e)

    def refresh(self) -> PersistenceOutcome:
        """
        Reload server routes into the store. Routes that only exist locally are
        kept after the server routes, so unsaved drafts survive a refresh.
        Records that cannot be converted are logged and skipped.
        """
        try:
            data = self._call_remote("list", self.remote.list)

            routes: List[Route] = []
            for item in data or []:
                try:
                    record = item if isinstance(item, RouteRecord) else RouteRecord.from_json(item)
                    if not record.is_active or not record.has_geometry:
                        continue
                    routes.append(record_to_route(record, self.policy))
                except ValueError as e:
                    logger.warning(f"Skipping malformed route record: {e}")

            local = self.store.local_routes()
            self.store.load(routes + local)
            logger.info(f"Loaded {len(routes)} server route(s), kept {len(local)} local route(s)")
            self.notifier.notify("Routes Loaded", f"Loaded {len(routes)} route(s) from the server.", Severity.INFO)
            return PersistenceOutcome(True, saved_remotely=True)

        except PersistenceError as e:
            return self._fail("refresh", e)

    def save_buffer(self,
                    buffer: EditBuffer,
                    metadata: Optional[RouteMetadata] = None,
                    changes: Optional[RouteChanges] = None) -> PersistenceOutcome:
        """
        Commit a live EditBuffer: create in draw mode, update in edit mode.
        The buffer is discarded only when the save succeeds.
        """
        if buffer.mode is BufferMode.EDITING:
            outcome = self.update(buffer.route_id, buffer.snapshot(), changes)
        elif buffer.mode is BufferMode.DRAWING:
            if metadata is None:
                return self._fail("create", ValidationError("Route details are required to save a drawing"))
            outcome = self.create(buffer.snapshot(), metadata)
        else:
            return self._fail("save", ValidationError("Nothing to save: no drawing or editing in progress"))

        if outcome:
            buffer.cancel()
        return outcome

    # ----------------
    # Auth
    # ----------------

    def _has_remote_access(self) -> bool:
        if not self.auth.is_authenticated():
            return False
        role = self.policy.required_role
        return role is None or self.auth.has_role(role)

    def _require_remote_access(self) -> None:
        if not self.auth.is_authenticated():
            raise AuthRequired("Please sign in to save changes to the server.")
        role = self.policy.required_role
        if role is not None and not self.auth.has_role(role):
            raise AuthRequired(f"The {role} role is required to change server routes.")

    # ----------------
    # Validation and route building
    # ----------------

    def _validated(self,
                   points: Sequence[Coordinate],
                   metadata: RouteMetadata) -> Tuple[Tuple[Coordinate, ...], RouteMetadata]:
        """
        Check required fields before any network call.
        Returns the points as a tuple and the metadata with trimmed text.
        """
        points = tuple(points)
        try:
            metadata = metadata.cleaned()
        except ValueError as e:
            raise ValidationError(f"Unknown difficulty level: {e}") from e

        problems = []
        if len(metadata.name) < self.policy.min_name_length:
            problems.append(f"name must be at least {self.policy.min_name_length} characters")
        if not metadata.region:
            problems.append("region is required")
        if metadata.min_altitude is None or metadata.min_altitude < 0:
            problems.append("minimum altitude must be 0 or more")
        if metadata.max_altitude is None or metadata.max_altitude <= 0:
            problems.append("maximum altitude must be greater than 0")
        if metadata.difficulty is None:
            problems.append("difficulty is required")
        if metadata.duration_days is not None and metadata.duration_days <= 0:
            problems.append("duration in days must be greater than 0")
        if metadata.distance_km is not None and metadata.distance_km <= 0:
            problems.append("distance must be greater than 0")
        if len(points) < self.policy.min_points:
            problems.append(f"a route needs at least {self.policy.min_points} points")

        if problems:
            raise ValidationError("Invalid route: " + "; ".join(problems))
        return points, metadata

    def _distance_for(self, points: Sequence[Coordinate], metadata: RouteMetadata) -> float:
        # an explicit distance from the form overrides the geometry sum
        if metadata.distance_km is not None:
            return metadata.distance_km * 1000.0
        return distance_meters(points, self.policy.earth_radius_m)

    def _build_route(self,
                     route_id: str,
                     points: Sequence[Coordinate],
                     metadata: RouteMetadata,
                     *,
                     created_at: Optional[datetime] = None,
                     is_active: bool = True) -> Route:
        distance_m = self._distance_for(points, metadata)
        return Route(
            id=route_id,
            name=metadata.name,
            geometry=points,
            distance_m=distance_m,
            duration_s=estimated_duration_seconds(distance_m, self.policy.seconds_per_km),
            difficulty=metadata.difficulty,
            region=metadata.region,
            trek_name=metadata.trek_name,
            min_altitude=metadata.min_altitude,
            max_altitude=metadata.max_altitude,
            description=metadata.description,
            duration_days=metadata.duration_days,
            created_at=created_at or datetime.now(timezone.utc),
            is_active=is_active,
            local_id_prefix=self.policy.local_id_prefix,
        )

    def _new_local_id(self) -> str:
        return f"{self.policy.local_id_prefix}{uuid.uuid4()}"

    # ----------------
    # Remote calls
    # ----------------

    def _call_remote(self, operation: str, call: Callable[[], RemoteResult]) -> Any:
        """
        Run one remote call and return its payload.
        Any exception from the service or an unsuccessful result becomes a
        classified PersistenceError.
        """
        try:
            result = call()
        except Exception as e:
            logger.exception(f"Remote {operation} raised")
            raise RemoteFailure(str(e) or e.__class__.__name__) from e

        if not result.ok:
            raise classify_remote_failure(result, self.policy.auth_failure_markers)
        return result.data

    def _route_from_data(self, data: Any) -> Route:
        try:
            record = data if isinstance(data, RouteRecord) else RouteRecord.from_json(data)
            return record_to_route(record, self.policy)
        except ValueError as e:
            raise RemoteFailure(f"Malformed route response: {e}") from e

    # ----------------
    # Failure handling
    # ----------------

    def _fail(self, operation: str, error: PersistenceError) -> PersistenceOutcome:
        logger.warning(f"Route {operation} failed ({error.__class__.__name__}): {error.message}")
        self.notifier.notify(error.title, error.message, Severity.ERROR)
        if isinstance(error, AuthRequired):
            self.auth.on_auth_required()
        return PersistenceOutcome(False, error=error)
