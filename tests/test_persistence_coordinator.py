import pytest

from editing.buffer import EditBuffer
from persistence.collaborators import RemoteResult, Severity
from persistence.coordinator import PersistenceCoordinator
from persistence.errors import AuthRequired, RemoteFailure, SessionExpired, ValidationError
from routes.models import Coordinate, Difficulty, Route, RouteChanges, RouteMetadata
from routes.store import RouteCollectionStore


class MockRemoteService:
    """
    Records every call and answers with the configured RemoteResult.
    """
    def __init__(self):
        self.calls = []
        self.create_result = None
        self.update_result = None
        self.delete_result = RemoteResult.success()
        self.list_result = RemoteResult.success([])
        self.raise_on_call = None

    def _answer(self, name, result, *args):
        self.calls.append((name,) + args)
        if self.raise_on_call:
            raise self.raise_on_call
        return result

    def create(self, request):
        return self._answer("create", self.create_result, request)

    def update(self, route_id, request):
        return self._answer("update", self.update_result, route_id, request)

    def delete(self, route_id):
        return self._answer("delete", self.delete_result, route_id)

    def list(self):
        return self._answer("list", self.list_result)

    def get_by_id(self, route_id):
        return self._answer("get_by_id", RemoteResult.failure("not used"), route_id)


class MockAuthGate:
    def __init__(self, authenticated=False, roles=()):
        self.authenticated = authenticated
        self.roles = set(roles)
        self.auth_required_calls = 0

    def is_authenticated(self):
        return self.authenticated

    def has_role(self, role):
        return role in self.roles

    def on_auth_required(self):
        self.auth_required_calls += 1


class MockNotifier:
    def __init__(self):
        self.calls = []

    def notify(self, title, description, severity):
        self.calls.append((title, description, severity))

    @property
    def errors(self):
        return [call for call in self.calls if call[2] == Severity.ERROR]


def record_json(route_id="srv-1", coordinates=None, **overrides):
    data = {
        "id": route_id,
        "name": "Everest Base Camp",
        "region": "Khumbu",
        "minAltitude": 2800,
        "maxAltitude": 5364,
        "difficultyLevel": "HARD",
        "distanceKm": 15.0,
        "geometryCoordinates": coordinates or [[86.71, 27.69], [86.85, 27.98]],
        "isActive": True,
        "createdAt": "2024-03-01T10:00:00Z",
    }
    data.update(overrides)
    return data


TRIANGLE = [Coordinate(0, 0), Coordinate(0, 1), Coordinate(1, 1)]


@pytest.fixture
def remote():
    return MockRemoteService()


@pytest.fixture
def notifier():
    return MockNotifier()


@pytest.fixture
def store():
    return RouteCollectionStore()


@pytest.fixture
def metadata():
    return RouteMetadata(name="Test", region="Everest", min_altitude=0, max_altitude=5000,
                         difficulty=Difficulty.EASY)


def make_coordinator(store, remote, notifier, auth):
    return PersistenceCoordinator(store, remote, auth, notifier)


# ---- create ----

def test_unauthenticated_create_saves_locally(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=False)
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    # 1. No network call at all
    assert remote.calls == []

    # 2. Exactly one local route, selected
    assert outcome
    assert len(store) == 1
    route = store.routes()[0]
    assert route.is_local
    assert route.id.startswith("local-")
    assert len(route.geometry) == 3
    assert route.distance_m > 0
    assert route.duration_s == pytest.approx(route.distance_m / 1000 * 72)
    assert store.selected_id == route.id

    # 3. One success notification
    assert len(notifier.calls) == 1
    assert notifier.calls[0][2] == Severity.INFO


def test_create_with_distance_override(store, remote, notifier, metadata):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    override = RouteMetadata(name="Override", region="Langtang", min_altitude=100, max_altitude=4000,
                             difficulty=Difficulty.MODERATE, distance_km=12.5)

    outcome = coordinator.create(TRIANGLE, override)

    assert outcome.route.distance_m == pytest.approx(12500)
    assert outcome.route.duration_s == pytest.approx(900)


def test_signed_in_without_role_saves_locally(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["USER"])
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    assert outcome.route.is_local
    assert remote.calls == []
    assert auth.auth_required_calls == 0


def test_authenticated_create_goes_to_server(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.create_result = RemoteResult.success(record_json("srv-9"))
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    # 1. Request carries [lng, lat] pairs
    assert len(remote.calls) == 1
    request = remote.calls[0][1]
    assert request.geometry_coordinates == [[0, 0], [1, 0], [1, 1]]
    assert request.name == "Test"
    assert request.difficulty_level == "EASY"

    # 2. Response converted back to {lat, lng}
    assert outcome.saved_remotely
    route = store.get("srv-9")
    assert route is not None
    assert not route.is_local
    assert route.geometry[0] == Coordinate(27.69, 86.71)
    assert route.distance_m == pytest.approx(15000)
    assert route.difficulty is Difficulty.HARD
    assert store.selected_id == "srv-9"
    assert notifier.errors == []


def test_authenticated_create_with_401_is_session_expired(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.create_result = RemoteResult.failure("Request failed with status 401")
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    assert not outcome
    assert isinstance(outcome.error, SessionExpired)

    # 1. Exactly one notification, classified as an expired session
    assert len(notifier.calls) == 1
    assert notifier.calls[0][0] == "Session Expired"
    assert notifier.calls[0][2] == Severity.ERROR

    # 2. Re-authentication requested once, nothing stored
    assert auth.auth_required_calls == 1
    assert len(store) == 0


def test_create_keeps_server_route_with_unknown_difficulty(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.create_result = RemoteResult.success(record_json("srv-9", difficultyLevel="MEDIUM"))
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    assert outcome.saved_remotely
    assert [r.id for r in store.routes()] == ["srv-9"]
    assert store.get("srv-9").difficulty is None
    assert notifier.errors == []
    assert len(remote.calls) == 1

def test_other_remote_failure_does_not_ask_for_login(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.create_result = RemoteResult.failure("Internal server error", status=500)
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    assert isinstance(outcome.error, RemoteFailure)
    assert auth.auth_required_calls == 0
    assert len(notifier.calls) == 1
    assert len(store) == 0


def test_remote_exception_is_absorbed(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.raise_on_call = ConnectionError("connection reset")
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    assert isinstance(outcome.error, RemoteFailure)
    assert "connection reset" in outcome.error.message
    assert len(notifier.calls) == 1
    assert len(store) == 0


def test_malformed_create_response_is_remote_failure(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.create_result = RemoteResult.success(record_json(coordinates=[[86.71, 27.69]]))
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(TRIANGLE, metadata)

    assert isinstance(outcome.error, RemoteFailure)
    assert len(store) == 0


@pytest.mark.parametrize(
    "overrides, points",
    [
        ({"name": "ab"}, TRIANGLE),
        ({"name": "   "}, TRIANGLE),
        ({"region": ""}, TRIANGLE),
        ({"min_altitude": -1}, TRIANGLE),
        ({"max_altitude": 0}, TRIANGLE),
        ({"difficulty": None}, TRIANGLE),
        ({"difficulty": "IMPOSSIBLE"}, TRIANGLE),
        ({"difficulty": 3}, TRIANGLE),
        ({"duration_days": 0}, TRIANGLE),
        ({}, TRIANGLE[:1]),
    ],
)
def test_create_validation_failures(store, remote, notifier, overrides, points):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    fields = dict(name="Valid name", region="Manaslu", min_altitude=0, max_altitude=5000,
                  difficulty=Difficulty.EASY)
    fields.update(overrides)
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.create(points, RouteMetadata(**fields))

    assert isinstance(outcome.error, ValidationError)
    assert remote.calls == []
    assert len(store) == 0
    assert len(notifier.calls) == 1
    assert auth.auth_required_calls == 0


# ---- update ----

def test_local_update_while_unauthenticated(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=False)
    coordinator = make_coordinator(store, remote, notifier, auth)
    created = coordinator.create(TRIANGLE, metadata).route
    notifier.calls.clear()

    new_points = TRIANGLE + [Coordinate(2, 2)]
    outcome = coordinator.update(created.id, new_points, RouteChanges(name="Longer trail"))

    assert outcome
    updated = store.get(created.id)
    assert len(updated.geometry) == 4
    assert updated.distance_m > created.distance_m
    assert updated.name == "Longer trail"
    # untouched fields keep their values
    assert updated.region == "Everest"
    assert updated.created_at == created.created_at

    assert remote.calls == []
    assert notifier.errors == []
    assert auth.auth_required_calls == 0
    # same slot, no duplicate
    assert len(store) == 1


def test_local_update_validation_failure_keeps_route(store, remote, notifier, metadata):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    created = coordinator.create(TRIANGLE, metadata).route

    outcome = coordinator.update(created.id, TRIANGLE[:1])

    assert isinstance(outcome.error, ValidationError)
    assert store.get(created.id) == created


def test_remote_update_requires_authentication(store, remote, notifier):
    auth = MockAuthGate(authenticated=False)
    server_route = Route(id="srv-1", name="Server trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0,
                         difficulty=Difficulty.EASY, region="Khumbu", min_altitude=0, max_altitude=100)
    store.load([server_route])
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.update("srv-1", TRIANGLE[:2])

    assert isinstance(outcome.error, AuthRequired)
    assert remote.calls == []
    assert store.get("srv-1") == server_route
    assert auth.auth_required_calls == 1
    assert len(notifier.calls) == 1


def test_remote_update_success_replaces_entry(store, remote, notifier):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    server_route = Route(id="srv-1", name="Server trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0,
                         difficulty=Difficulty.EASY, region="Khumbu", min_altitude=0, max_altitude=100)
    other = Route(id="srv-2", name="Other trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0)
    store.load([server_route, other])
    store.select("srv-2")
    remote.update_result = RemoteResult.success(record_json("srv-1", name="Server trail v2"))
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.update("srv-1", changes=RouteChanges(name="Server trail v2"))

    assert outcome.saved_remotely
    name, route_id, request = remote.calls[0]
    assert (name, route_id) == ("update", "srv-1")
    # geometry kept from the stored route when no points were given
    assert request.geometry_coordinates == [[0, 0], [1, 0], [1, 1]]
    assert request.name == "Server trail v2"

    assert [r.id for r in store.routes()] == ["srv-1", "srv-2"]
    assert store.get("srv-1").name == "Server trail v2"
    assert store.selected_id == "srv-1"


def test_update_unknown_route(store, remote, notifier):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate(True, ["ADMIN"]))
    outcome = coordinator.update("srv-404", TRIANGLE)
    assert isinstance(outcome.error, ValidationError)
    assert remote.calls == []


# ---- delete ----

def test_local_delete_without_auth(store, remote, notifier, metadata):
    auth = MockAuthGate(authenticated=False)
    coordinator = make_coordinator(store, remote, notifier, auth)
    created = coordinator.create(TRIANGLE, metadata).route

    outcome = coordinator.delete(created.id)

    assert outcome
    assert len(store) == 0
    assert store.selected_id is None
    assert remote.calls == []
    assert auth.auth_required_calls == 0


def test_remote_delete(store, remote, notifier):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    store.load([Route(id="srv-1", name="Server trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0)])
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.delete("srv-1")

    assert outcome
    assert remote.calls == [("delete", "srv-1")]
    assert "srv-1" not in store


def test_remote_delete_unauthorized_keeps_route(store, remote, notifier):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    store.load([Route(id="srv-1", name="Server trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0)])
    remote.delete_result = RemoteResult.failure("Unauthorized", status=401)
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.delete("srv-1")

    assert isinstance(outcome.error, SessionExpired)
    assert "srv-1" in store
    assert auth.auth_required_calls == 1


def test_remote_delete_requires_role(store, remote, notifier):
    auth = MockAuthGate(authenticated=True, roles=["USER"])
    store.load([Route(id="srv-1", name="Server trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0)])
    coordinator = make_coordinator(store, remote, notifier, auth)

    outcome = coordinator.delete("srv-1")

    assert isinstance(outcome.error, AuthRequired)
    assert remote.calls == []
    assert auth.auth_required_calls == 1


# ---- refresh / save_buffer ----

def test_refresh_loads_server_routes_and_keeps_local(store, remote, notifier, metadata):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    local = coordinator.create(TRIANGLE, metadata).route
    remote.list_result = RemoteResult.success([
        record_json("srv-1"),
        record_json("srv-2", isActive=False),
        record_json("srv-3", geometryCoordinates=[]),
    ])

    outcome = coordinator.refresh()

    assert outcome
    assert [r.id for r in store.routes()] == ["srv-1", local.id]
    assert store.selected_id == "srv-1"
    assert notifier.calls[-1][0] == "Routes Loaded"


def test_save_buffer_draw_mode(store, remote, notifier, metadata):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    buffer = EditBuffer()
    buffer.start(TRIANGLE)

    outcome = coordinator.save_buffer(buffer, metadata)

    assert outcome.route.is_local
    assert not buffer.is_active


def test_save_buffer_keeps_buffer_on_failure(store, remote, notifier):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    buffer = EditBuffer()
    buffer.start(TRIANGLE)

    outcome = coordinator.save_buffer(buffer, RouteMetadata(name="x", region="", min_altitude=0, max_altitude=0))

    assert isinstance(outcome.error, ValidationError)
    assert buffer.is_active
    assert len(buffer) == 3


def test_save_buffer_edit_mode(store, remote, notifier, metadata):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    created = coordinator.create(TRIANGLE, metadata).route
    buffer = EditBuffer()
    buffer.start_editing(created)
    buffer.insert_after(2)

    outcome = coordinator.save_buffer(buffer)

    assert outcome
    assert len(store.get(created.id).geometry) == 4


def test_save_buffer_idle(store, remote, notifier):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    outcome = coordinator.save_buffer(EditBuffer())
    assert isinstance(outcome.error, ValidationError)
    assert len(notifier.calls) == 1


def test_update_of_server_route_without_region(store, remote, notifier):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    remote.list_result = RemoteResult.success([record_json("a", region=None)])
    remote.update_result = RemoteResult.success(record_json("a", region="Unknown"))
    coordinator = make_coordinator(store, remote, notifier, auth)
    coordinator.refresh()

    outcome = coordinator.update("a", TRIANGLE)

    assert outcome.saved_remotely
    name, route_id, request = remote.calls[-1]
    assert (name, route_id) == ("update", "a")
    assert request.region == "Unknown"
    assert len(request.geometry_coordinates) == 3


def test_sequential_updates_apply_in_completion_order(store, remote, notifier):
    auth = MockAuthGate(authenticated=True, roles=["ADMIN"])
    store.load([Route(id="srv-1", name="Server trail", geometry=TRIANGLE, distance_m=1.0, duration_s=1.0,
                      difficulty=Difficulty.EASY, region="Khumbu", min_altitude=0, max_altitude=100)])
    coordinator = make_coordinator(store, remote, notifier, auth)

    remote.update_result = RemoteResult.success(record_json("srv-1", name="First edit"))
    first = coordinator.update("srv-1", changes=RouteChanges(name="First edit"))
    remote.update_result = RemoteResult.success(record_json("srv-1", name="Second edit"))
    second = coordinator.update("srv-1", changes=RouteChanges(name="Second edit"))

    assert first and second
    assert [call[0] for call in remote.calls] == ["update", "update"]
    # no de-duplication: the result that resolved last is the one kept
    assert len(store) == 1
    assert store.get("srv-1").name == "Second edit"


def test_refresh_skips_records_that_cannot_be_converted(store, remote, notifier):
    coordinator = make_coordinator(store, remote, notifier, MockAuthGate())
    remote.list_result = RemoteResult.success([
        record_json("a"),
        {"name": "record without id"},
        record_json("b", difficultyLevel="MEDIUM"),
    ])

    outcome = coordinator.refresh()

    assert outcome
    assert [r.id for r in store.routes()] == ["a", "b"]
    assert store.get("b").difficulty is None
    assert notifier.errors == []
    assert notifier.calls[-1][0] == "Routes Loaded"
