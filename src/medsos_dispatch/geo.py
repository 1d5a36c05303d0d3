from __future__ import annotations

import math

from medsos_dispatch.errors import InvalidCoordinate

EARTH_RADIUS_KM = 6371.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_coordinate(latitude: float, longitude: float) -> None:
    if not _is_number(latitude) or not _is_number(longitude):
        raise InvalidCoordinate(f"Coordinate values must be numeric, got ({latitude!r}, {longitude!r})")
    if math.isnan(latitude) or math.isnan(longitude):
        raise InvalidCoordinate("Coordinate values must not be NaN")
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinate(f"Latitude {latitude} outside [-90, 90]")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinate(f"Longitude {longitude} outside [-180, 180]")


def distance_km(origin, target) -> float:
    """Great-circle distance between two coordinates using the haversine formula."""
    validate_coordinate(origin.latitude, origin.longitude)
    validate_coordinate(target.latitude, target.longitude)

    lat1, lon1 = math.radians(origin.latitude), math.radians(origin.longitude)
    lat2, lon2 = math.radians(target.latitude), math.radians(target.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push a just past 1 for near-antipodal points.
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
