import time

import pytest
import requests

from domain.exceptions import UpstreamUnavailableError
from domain.models import ReferencePool
from infrastructure.reference import csv_gateway
from infrastructure.reference.csv_gateway import ObjectStorageCsvGateway, parse_pool

PATHS = {
    "restaurants": "csv/Restaurants.csv",
    "recipients": "csv/Recipient.csv",
    "foodbanks": "csv/Foodbank.csv",
}

FOODBANKS_CSV = (
    "id,name,address,phone_number,latitude,longitude,type\n"
    "fb-a,Gangnam Food Bank,Seoul,02-111,37.51,127.01,basic\n"
    "fb-b,Gangwon Food Bank,Chuncheon,033-222,38.0,128.0,basic\n"
)


class _Response:
    def __init__(self, content=b"", status_code=200):
        self.content = content
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400


def test_parse_english_headers():
    records = parse_pool(ReferencePool.FOODBANKS, FOODBANKS_CSV.encode())
    assert [r.id for r in records] == ["fb-a", "fb-b"]
    assert records[0].latitude == pytest.approx(37.51)
    assert records[0].phone_number == "02-111"
    assert records[0].kind == "basic"


def test_parse_korean_headers_cp949():
    raw = (
        "ID,사회복지시설명,소재지도로명주소,전화번호,위도,경도\n"
        "r-1,햇살 쉼터,서울시 중구,02-123-4567,37.56,126.97\n"
    ).encode("cp949")
    records = parse_pool(ReferencePool.RECIPIENTS, raw)
    assert records[0].name == "햇살 쉼터"
    assert records[0].address == "서울시 중구"
    assert records[0].longitude == pytest.approx(126.97)


def test_parse_bad_coordinates_become_none():
    raw = b"id,name,latitude,longitude\nx,Cafe,,abc\ny,Deli,nan,inf\n"
    records = parse_pool(ReferencePool.RESTAURANTS, raw)
    assert all(r.latitude is None and r.longitude is None for r in records)


def test_parse_skips_rows_without_id():
    raw = b"id,name\n,Nameless\nok,Named\n"
    assert [r.id for r in parse_pool(ReferencePool.RESTAURANTS, raw)] == ["ok"]


def test_parse_missing_name_column():
    with pytest.raises(UpstreamUnavailableError):
        parse_pool(ReferencePool.FOODBANKS, b"id,address\n1,Seoul\n")


def test_parse_empty_file():
    with pytest.raises(UpstreamUnavailableError):
        parse_pool(ReferencePool.FOODBANKS, b"")


async def test_http_source(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        return _Response(FOODBANKS_CSV.encode())

    monkeypatch.setattr(csv_gateway.requests, "get", fake_get)
    gateway = ObjectStorageCsvGateway("https://bucket.example.com/data/", PATHS, timeout=2)

    records = await gateway.list_foodbanks()
    assert seen["url"] == "https://bucket.example.com/data/csv/Foodbank.csv"
    assert len(records) == 2


async def test_http_error_status(monkeypatch):
    monkeypatch.setattr(csv_gateway.requests, "get", lambda url, timeout: _Response(status_code=503))
    gateway = ObjectStorageCsvGateway("https://bucket.example.com", PATHS)
    with pytest.raises(UpstreamUnavailableError):
        await gateway.list_foodbanks()


async def test_http_connection_error(monkeypatch):
    def boom(url, timeout):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(csv_gateway.requests, "get", boom)
    gateway = ObjectStorageCsvGateway("https://bucket.example.com", PATHS)
    with pytest.raises(UpstreamUnavailableError):
        await gateway.list_recipients()


async def test_slow_source_times_out(monkeypatch):
    def slow(url, timeout):
        time.sleep(0.5)
        return _Response(FOODBANKS_CSV.encode())

    monkeypatch.setattr(csv_gateway.requests, "get", slow)
    gateway = ObjectStorageCsvGateway("https://bucket.example.com", PATHS, timeout=0.05)
    with pytest.raises(UpstreamUnavailableError):
        await gateway.list_foodbanks()


async def test_directory_source_and_search(tmp_path):
    (tmp_path / "csv").mkdir()
    (tmp_path / "csv" / "Foodbank.csv").write_text(FOODBANKS_CSV, encoding="utf-8")
    gateway = ObjectStorageCsvGateway(str(tmp_path), PATHS)

    assert len(await gateway.list_foodbanks()) == 2
    assert [r.id for r in await gateway.search_foodbanks("gangwon")] == ["fb-b"]
    assert len(await gateway.search_foodbanks("  ")) == 2

    file_gateway = ObjectStorageCsvGateway(tmp_path.as_uri(), PATHS)
    assert len(await file_gateway.list_foodbanks()) == 2


async def test_missing_file(tmp_path):
    gateway = ObjectStorageCsvGateway(str(tmp_path), PATHS)
    with pytest.raises(UpstreamUnavailableError):
        await gateway.list_restaurants()


async def test_unconfigured_source():
    with pytest.raises(UpstreamUnavailableError):
        await ObjectStorageCsvGateway("", PATHS).list_foodbanks()
