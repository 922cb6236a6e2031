"""
End-to-end editor session without a UI or a live server.

Draws a route while signed out (saved locally), edits it, then signs in and
saves a second drawing through an in-memory route service, and finally
exports the collection to CSV and GeoJSON next to the repository root.
Pass --api to talk to the real route API configured in .env instead.
"""

import argparse
import json
import logging
import os
import uuid
from datetime import datetime, timezone

from editing.buffer import EditBuffer
from editing.selection import SelectionSync
from geo.geojson import routes_to_feature_collection
from geo.geometry import format_distance, format_duration
from persistence.collaborators import LoggingNotifier, RemoteResult, StaticAuthGate
from persistence.coordinator import PersistenceCoordinator
from persistence.route_client import HttpRouteService
from routes.export import export_routes_csv
from routes.models import Coordinate, Difficulty, RouteChanges, RouteMetadata
from routes.policy import default_policy
from routes.store import RouteCollectionStore


class InMemoryRouteService:
    """
    Stands in for the route API: stores request bodies as records.
    """
    def __init__(self):
        self.records = {}

    def create(self, request):
        record = dict(request.to_json(), id=str(uuid.uuid4()), createdAt=datetime.now(timezone.utc).isoformat())
        self.records[record["id"]] = record
        return RemoteResult.success(record, status=201)

    def update(self, route_id, request):
        if route_id not in self.records:
            return RemoteResult.failure("Route not found", status=404)
        self.records[route_id] = dict(self.records[route_id], **request.to_json())
        return RemoteResult.success(self.records[route_id])

    def delete(self, route_id):
        if self.records.pop(route_id, None) is None:
            return RemoteResult.failure("Route not found", status=404)
        return RemoteResult.success()

    def list(self):
        return RemoteResult.success(list(self.records.values()))

    def get_by_id(self, route_id):
        if route_id not in self.records:
            return RemoteResult.failure("Route not found", status=404)
        return RemoteResult.success(self.records[route_id])


def print_store(store):
    print("\n--- Routes ---")
    for route in store.routes():
        marker = "*" if route.id == store.selected_id else " "
        where = "local" if route.is_local else "server"
        print(
            f"{marker} {route.name:<24} {where:<6} {len(route.geometry)} pts  "
            f"{format_distance(route.distance_m):>9}  {format_duration(route.duration_s)}"
        )


def run_session(use_api: bool = False):
    print("=== STARTING ROUTE EDITOR SESSION ===")

    policy = default_policy()
    store = RouteCollectionStore()
    auth = StaticAuthGate(on_login_required=lambda: print("[AUTH] Sign-in requested"))
    notifier = LoggingNotifier()
    remote = HttpRouteService(timeout=policy.request_timeout_sec) if use_api else InMemoryRouteService()
    coordinator = PersistenceCoordinator(store, remote, auth, notifier, policy)

    buffer = EditBuffer(policy)
    focus = SelectionSync(buffer)

    # 1. Draw while signed out -> saved locally
    buffer.start()
    for lat, lng in [(27.7172, 85.3240), (27.7300, 85.3400), (27.7500, 85.3600)]:
        buffer.append_point(Coordinate(lat, lng))
    metadata = RouteMetadata(
        name="Kathmandu Ridge",
        region="Kathmandu Valley",
        min_altitude=1300,
        max_altitude=2100,
        difficulty=Difficulty.MODERATE,
    )
    outcome = coordinator.save_buffer(buffer, metadata)
    print(f"Draw-save while signed out -> success={outcome.success}, local={outcome.route.is_local}")

    # 2. Edit the local route: insert a point after the start and focus it
    buffer.start_editing(outcome.route)
    inserted = buffer.insert_after(0)
    buffer.focus(1)
    print(f"Inserted {inserted} -> map target {focus.map_target()}")
    print("Waypoints: " + ", ".join(wp.name for wp in buffer.waypoints))
    outcome = coordinator.save_buffer(buffer, changes=RouteChanges(duration_days=1))
    print(f"Edit-save on local route -> success={outcome.success}")

    # 3. Sign in as admin and draw a second route -> server
    auth.authenticated = True
    auth.roles = frozenset({"ADMIN"})
    buffer.start([Coordinate(28.2096, 83.9856), Coordinate(28.3949, 84.1240)])
    outcome = coordinator.save_buffer(
        buffer,
        RouteMetadata(name="Pokhara Approach", region="Annapurna", min_altitude=800, max_altitude=3200,
                      difficulty=Difficulty.HARD),
    )
    print(f"Draw-save while signed in -> success={outcome.success}, remote={outcome.saved_remotely}")

    # 4. Refresh from the server keeps local drafts
    coordinator.refresh()
    print_store(store)

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    csv_path = export_routes_csv(store.routes(), os.path.join(base_dir, "routes_export.csv"))
    geojson_path = os.path.join(base_dir, "routes_export.geojson")
    with open(geojson_path, "w") as file:
        json.dump(routes_to_feature_collection(store.routes()), file, indent=2)

    print("\n=== SESSION COMPLETE ===")
    print(f"Notifications sent: {len(notifier.history)}")
    print(f"Exported {len(store)} route(s) to {csv_path} and {geojson_path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--api", action="store_true", help="use the route API from ROUTES_API_BASE_URL")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    run_session(use_api=args.api)
