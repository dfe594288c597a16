import math

import pytest

from domain.exceptions import InvalidCoordinatesError, InvalidLimitError
from domain.geo import haversine_km, locate_by_name, nearest, nearest_one
from domain.models import GeoPoint, ReferenceRecord

SEOUL = GeoPoint(37.5665, 126.9780)


def _rec(id_, lat, lng, name=""):
    return ReferenceRecord(id=id_, name=name or id_, latitude=lat, longitude=lng)


def test_haversine_zero_for_same_point():
    assert haversine_km(SEOUL, SEOUL.latitude, SEOUL.longitude) == pytest.approx(0.0)


def test_haversine_seoul_to_busan():
    # Roughly 325 km as the crow flies
    assert haversine_km(SEOUL, 35.1796, 129.0756) == pytest.approx(325, abs=5)


def test_nearest_orders_by_distance():
    far = _rec("far", 38.0, 128.0)
    near = _rec("near", 37.57, 126.98)
    mid = _rec("mid", 37.6, 127.1)
    assert [r.id for r in nearest(SEOUL, [far, near, mid])] == ["near", "mid", "far"]


def test_nearest_respects_limit():
    records = [_rec(str(i), 37.0 + i / 10, 127.0) for i in range(5)]
    assert len(nearest(SEOUL, records, limit=2)) == 2


def test_missing_coordinates_rank_last():
    unlocated = _rec("none", None, None)
    located = _rec("far", 33.5, 126.5)
    assert [r.id for r in nearest(SEOUL, [unlocated, located])] == ["far", "none"]


def test_ties_keep_input_order():
    a = _rec("a", 37.6, 127.0)
    b = _rec("b", 37.6, 127.0)
    assert [r.id for r in nearest(SEOUL, [a, b])] == ["a", "b"]
    assert [r.id for r in nearest(SEOUL, [b, a])] == ["b", "a"]


@pytest.mark.parametrize("limit", [0, -1, True, 2.5, "3"])
def test_invalid_limit_rejected(limit):
    with pytest.raises(InvalidLimitError):
        nearest(SEOUL, [_rec("a", 37.0, 127.0)], limit=limit)


def test_nearest_one_empty_pool():
    assert nearest_one(SEOUL, []) is None


def test_locate_by_name_ignores_case_and_whitespace():
    records = [_rec("x", None, None, "Kimbap House"), _rec("y", 37.1, 127.2, "Kimbap House")]
    point = locate_by_name(records, "  kimbap house ")
    assert point == GeoPoint(37.1, 127.2)


def test_locate_by_name_unknown():
    assert locate_by_name([_rec("x", 37.0, 127.0, "Other")], "Kimbap House") is None
    assert locate_by_name([], "") is None


@pytest.mark.parametrize(
    "lat,lng",
    [(91, 0), (-91, 0), (0, 181), (0, -181), ("north", 0), (math.nan, 0), (None, 0)],
)
def test_geopoint_validation(lat, lng):
    with pytest.raises(InvalidCoordinatesError):
        GeoPoint.validated(lat, lng)


def test_geopoint_accepts_numeric_strings():
    assert GeoPoint.validated("37.5", "127") == GeoPoint(37.5, 127.0)
