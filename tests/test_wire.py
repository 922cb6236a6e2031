import pytest

from persistence.wire import (
    RouteRecord,
    build_route_request,
    from_wire_coordinates,
    record_to_route,
    to_wire_coordinates,
)
from routes.models import Coordinate, Difficulty, RouteMetadata
from routes.policy import default_policy


def test_coordinates_swap_order_at_the_boundary():
    points = [Coordinate(27.7, 85.3), Coordinate(28.0, 86.9)]

    wire = to_wire_coordinates(points)
    assert wire == [[85.3, 27.7], [86.9, 28.0]]
    assert from_wire_coordinates(wire) == points


def test_from_wire_ignores_altitude_and_empty():
    assert from_wire_coordinates([[85.3, 27.7, 1400]]) == [Coordinate(27.7, 85.3)]
    assert from_wire_coordinates(None) == []


def test_request_omits_unset_optional_fields():
    metadata = RouteMetadata(name="Trail", region="Khumbu", min_altitude=0, max_altitude=10,
                             difficulty=Difficulty.EXTREME)
    body = build_route_request([Coordinate(0, 0), Coordinate(0, 1)], metadata, 111194.93).to_json()

    assert body["difficultyLevel"] == "EXTREME"
    assert body["distanceKm"] == pytest.approx(111.195)
    assert body["geometryCoordinates"] == [[0, 0], [1, 0]]
    assert body["isActive"] is True
    assert "trekName" not in body
    assert "durationDays" not in body


def test_record_without_distance_uses_geometry():
    record = RouteRecord.from_json({
        "id": 42,
        "name": "Equator hop",
        "geometryCoordinates": [[0, 0], [1, 0]],
        "distanceKm": None,
        "durationDays": 3,
    })
    route = record_to_route(record, default_policy())

    assert route.id == "42"
    assert route.distance_m == pytest.approx(111195, rel=0.001)
    # duration comes from distance, never from durationDays
    assert route.duration_s == pytest.approx(route.distance_m / 1000 * 72)
    assert route.duration_days == 3
    assert route.difficulty is None
    assert not route.is_local


def test_record_requires_id():
    with pytest.raises(ValueError):
        RouteRecord.from_json({"name": "no id"})


def test_record_with_unknown_difficulty_is_kept(caplog):
    record = RouteRecord.from_json({
        "id": "srv-9",
        "name": "Server level",
        "difficultyLevel": "MEDIUM",
        "geometryCoordinates": [[0, 0], [1, 0]],
    })

    with caplog.at_level("WARNING", logger="persistence.wire"):
        route = record_to_route(record, default_policy())

    assert route.id == "srv-9"
    assert route.difficulty is None
    assert "MEDIUM" in caplog.text


def test_record_difficulty_is_case_insensitive():
    record = RouteRecord.from_json({
        "id": "srv-10",
        "difficultyLevel": " very_hard ",
        "geometryCoordinates": [[0, 0], [1, 0]],
    })
    assert record_to_route(record, default_policy()).difficulty is Difficulty.VERY_HARD
