"""
Geospatial Correlator

Reduces a list of geotagged feed items (FIRMS fire points, EONET events,
villages) to the nearest few around a query point, for inclusion in a
bounded-size model prompt.

Usage:
    from modules.geo import correlate_nearby, flat_location

    nearby = correlate_nearby(
        34.05, -118.25, fire_points, flat_location(),
        max_distance_km=200, max_items=10,
    )
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Mapping, TypeVar

from modules.errors import InvalidCoordinatesError

EARTH_RADIUS_KM = 6371.0

T = TypeVar("T", bound=Mapping[str, Any])


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two lat/lng points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _as_point(lat: Any, lng: Any) -> tuple[float, float] | None:
    """Coerce a coordinate pair to floats; None if either is unusable."""
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return None
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0):
        return None
    return lat_f, lng_f


def validate_point(lat: Any, lng: Any) -> tuple[float, float]:
    """Return the query point as floats or raise InvalidCoordinatesError."""
    point = _as_point(lat, lng)
    if point is None:
        raise InvalidCoordinatesError(
            f"Invalid coordinates ({lat}, {lng}): latitude must be in [-90, 90] "
            "and longitude in [-180, 180]"
        )
    return point


# ---------------------------------------------------------------------------
# Location accessors
# ---------------------------------------------------------------------------

def flat_location(
    lat_key: str = "latitude", lng_key: str = "longitude"
) -> Callable[[Mapping[str, Any]], tuple[float, float] | None]:
    """Accessor for records that carry their location as two flat fields."""

    def _locate(item: Mapping[str, Any]) -> tuple[float, float] | None:
        return _as_point(item.get(lat_key), item.get(lng_key))

    return _locate


def first_point_location(item: Mapping[str, Any]) -> tuple[float, float] | None:
    """Accessor for EONET-style records with a mixed ``geometry`` list.

    Uses the first ``Point`` entry; its coordinates are ``[lon, lat]``.
    Events that only have polygon or line geometries yield None.
    """
    geometry = item.get("geometry")
    if not isinstance(geometry, list):
        return None
    for geom in geometry:
        if not isinstance(geom, Mapping) or geom.get("type") != "Point":
            continue
        coords = geom.get("coordinates")
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            return None
        return _as_point(coords[1], coords[0])
    return None


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------

def correlate_nearby(
    lat: float,
    lng: float,
    items: Iterable[T],
    locate: Callable[[T], tuple[float, float] | None],
    *,
    max_distance_km: float,
    max_items: int,
) -> list[dict[str, Any]]:
    """Return the ``max_items`` nearest items within ``max_distance_km``.

    Args:
        lat: Query latitude, in [-90, 90].
        lng: Query longitude, in [-180, 180].
        items: Candidate records. Neither the sequence nor its records are
            modified.
        locate: Extracts ``(lat, lng)`` from a record. None, or anything
            that is not a pair, drops it.
        max_distance_km: Inclusive radius.
        max_items: Maximum number of results.

    Returns:
        New dicts holding each kept record's fields plus ``distance_km``,
        sorted ascending by distance. Ties keep their input order.

    Raises:
        InvalidCoordinatesError: if the query point is out of range.
    """
    lat, lng = validate_point(lat, lng)
    if max_items <= 0:
        return []

    scored: list[tuple[float, Mapping[str, Any]]] = []
    for item in items:
        located = locate(item)
        if not isinstance(located, (tuple, list)) or len(located) != 2:
            continue
        point = _as_point(*located)
        if point is None:
            continue
        distance = haversine_km(lat, lng, point[0], point[1])
        if distance <= max_distance_km:
            scored.append((distance, item))

    scored.sort(key=lambda pair: pair[0])
    return [{**item, "distance_km": distance} for distance, item in scored[:max_items]]
