import math

import pytest

from medsos_dispatch.errors import InvalidCoordinate
from medsos_dispatch.geo import distance_km
from medsos_dispatch.models import Coordinate


def test_distance_is_symmetric_and_zero_on_same_point() -> None:
    points = [
        Coordinate(28.6139, 77.2090),
        Coordinate(-33.8688, 151.2093),
        Coordinate(90.0, 0.0),
        Coordinate(0.0, -180.0),
        Coordinate(51.5074, -0.1278),
    ]

    for a in points:
        assert distance_km(a, a) == 0
        for b in points:
            assert distance_km(a, b) == distance_km(b, a)


def test_nearby_responder_distance_in_delhi() -> None:
    responder = Coordinate(28.6145, 77.2090)
    origin = Coordinate(28.6139, 77.2090)

    assert distance_km(origin, responder) == pytest.approx(0.0667, abs=0.001)


def test_known_long_distance() -> None:
    london = Coordinate(51.5074, -0.1278)
    paris = Coordinate(48.8566, 2.3522)

    assert distance_km(london, paris) == pytest.approx(343.5, abs=1.0)


def test_antipodal_points_are_half_circumference_apart() -> None:
    assert distance_km(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0)) == pytest.approx(math.pi * 6371.0)


@pytest.mark.parametrize(
    "latitude, longitude",
    [(90.5, 0.0), (-91.0, 10.0), (10.0, 180.01), (0.0, -200.0), (float("nan"), 0.0)],
)
def test_out_of_range_coordinates_are_rejected(latitude: float, longitude: float) -> None:
    with pytest.raises(InvalidCoordinate):
        Coordinate(latitude, longitude)


def test_near_antipodal_points_do_not_overflow() -> None:
    half_circumference = math.pi * 6371.0
    for step in range(1, 9000):
        lat = step / 100
        a = Coordinate(lat, 10.0)
        b = Coordinate(-lat, -170.0)
        assert distance_km(a, b) == pytest.approx(half_circumference, abs=0.01)


def test_boolean_coordinates_are_rejected() -> None:
    with pytest.raises(InvalidCoordinate):
        Coordinate(True, False)
    with pytest.raises(InvalidCoordinate):
        Coordinate(28.6, True)
