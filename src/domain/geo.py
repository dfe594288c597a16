"""
domain.geo - Great-circle ranking of located candidates.

Pure functions, no I/O. A candidate is anything with ``latitude`` and
``longitude`` attributes; either may be None. Candidates without both
coordinates rank last instead of raising.

The ranking is a linear scan. Larger pools can swap in a spatial index
behind ``nearest`` without changing its signature.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Protocol, TypeVar

from domain.exceptions import InvalidLimitError
from domain.models import GeoPoint

EARTH_RADIUS_KM = 6371.0
DEFAULT_LIMIT = 10


class Located(Protocol):
    latitude: Optional[float]
    longitude: Optional[float]


L = TypeVar("L", bound=Located)


def haversine_km(origin: GeoPoint, latitude: float, longitude: float) -> float:
    """Haversine distance in kilometres between ``origin`` and a point."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(latitude)
    d_lat = math.radians(latitude - origin.latitude)
    d_lng = math.radians(longitude - origin.longitude)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_to(origin: GeoPoint, candidate: Located) -> float:
    """Distance to ``candidate``, or +inf when it has no coordinates."""
    lat = getattr(candidate, "latitude", None)
    lng = getattr(candidate, "longitude", None)
    if lat is None or lng is None:
        return math.inf
    return haversine_km(origin, lat, lng)


def _check_limit(limit: object) -> int:
    # bool is an int subclass; True is not a meaningful limit
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidLimitError(f"limit must be a positive integer, got {limit!r}.")
    return limit


def nearest(
    origin: GeoPoint,
    candidates: Iterable[L],
    limit: int = DEFAULT_LIMIT,
) -> list[L]:
    """Return up to ``limit`` candidates, closest first.

    The sort is stable, so equal distances keep their input order.
    """
    _check_limit(limit)
    ranked = sorted(candidates, key=lambda c: distance_to(origin, c))
    return ranked[:limit]


def nearest_one(origin: GeoPoint, candidates: Iterable[L]) -> Optional[L]:
    """The single closest candidate, or None for an empty pool."""
    ranked = nearest(origin, candidates, limit=1)
    return ranked[0] if ranked else None


def locate_by_name(records: Iterable[L], name: str) -> Optional[GeoPoint]:
    """Coordinates of the first located record whose ``name`` equals ``name``.

    Comparison ignores case and surrounding whitespace.
    """
    wanted = (name or "").strip().lower()
    if not wanted:
        return None
    for record in records:
        if (getattr(record, "name", "") or "").strip().lower() != wanted:
            continue
        if record.latitude is not None and record.longitude is not None:
            return GeoPoint(record.latitude, record.longitude)
    return None
