"""
infrastructure.reference.csv_gateway - Reference data pools from object storage.

Implements ReferenceDataGateway by downloading one CSV export per pool
(restaurants, recipients, food-banks) and parsing it with pandas.
Uses requests via run_in_executor for async compat, bounded by a timeout.

Sources:
    https://bucket.example.com/           → GET <base>/<pool path>
    file:///srv/reference  or  /srv/reference → read <dir>/<pool path>

Headers are resolved through per-pool alias tables, so both the plain
English layout (id,name,address,phone_number,latitude,longitude,type) and
the Korean public-data exports load without a mapping step.

Every call fetches a fresh snapshot; nothing is cached. Any failure to
reach or parse a source raises UpstreamUnavailableError.
"""

from __future__ import annotations

import asyncio
import io
import logging
import math
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import pandas as pd
import requests

from domain.exceptions import UpstreamUnavailableError
from domain.models import ReferencePool, ReferenceRecord

logger = logging.getLogger(__name__)

_COMMON_ALIASES: dict[str, list[str]] = {
    "id": ["id", "ID", "Id"],
    "latitude": ["latitude", "lat", "위도"],
    "longitude": ["longitude", "lng", "lon", "경도"],
}

_POOL_ALIASES: dict[ReferencePool, dict[str, list[str]]] = {
    ReferencePool.RESTAURANTS: {
        "name": ["name", "businessName", "사업장명"],
        "address": ["address", "roadAddress", "도로명전체주소", "소재지전체주소"],
        "phone_number": ["phone_number", "phone", "소재지전화"],
        "kind": ["type", "kind", "businessType", "업태구분명"],
    },
    ReferencePool.RECIPIENTS: {
        "name": ["name", "facilityName", "사회복지시설명"],
        "address": ["address", "roadAddress", "소재지도로명주소"],
        "phone_number": ["phone_number", "phone", "전화번호"],
        "kind": ["type", "kind", "facilityType", "사회복지시설종류명"],
    },
    ReferencePool.FOODBANKS: {
        "name": ["name", "businessName", "사업장명"],
        "address": ["address", "roadAddress", "소재지도로명주소"],
        "phone_number": ["phone_number", "phone", "관리기관전화번호"],
        "kind": ["type", "kind", "businessType", "사업장유형"],
    },
}

_REQUIRED_FIELDS = ("id", "name")
_ENCODINGS = ("utf-8-sig", "cp949")


class ObjectStorageCsvGateway:
    """Read the three candidate pools from CSV exports in object storage.

    Implements ReferenceDataGateway (structural typing, no explicit inheritance).
    """

    def __init__(
        self,
        base_url: str,
        paths: dict[str, str],
        timeout: float = 10.0,
    ):
        self._base_url = base_url
        self._paths = {ReferencePool(k): v for k, v in paths.items()}
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    async def list_restaurants(self) -> list[ReferenceRecord]:
        return await self._load(ReferencePool.RESTAURANTS)

    async def list_recipients(self) -> list[ReferenceRecord]:
        return await self._load(ReferencePool.RECIPIENTS)

    async def list_foodbanks(self) -> list[ReferenceRecord]:
        return await self._load(ReferencePool.FOODBANKS)

    async def search_restaurants(self, term: str) -> list[ReferenceRecord]:
        return _filter(await self.list_restaurants(), term)

    async def search_recipients(self, term: str) -> list[ReferenceRecord]:
        return _filter(await self.list_recipients(), term)

    async def search_foodbanks(self, term: str) -> list[ReferenceRecord]:
        return _filter(await self.list_foodbanks(), term)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _load(self, pool: ReferencePool) -> list[ReferenceRecord]:
        if not self._base_url:
            raise UpstreamUnavailableError("No reference data source configured.")

        loop = asyncio.get_event_loop()
        try:
            raw = await asyncio.wait_for(
                loop.run_in_executor(None, self._fetch, pool),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise UpstreamUnavailableError(
                f"Reference data '{pool.value}' timed out after {self._timeout}s"
            )

        records = parse_pool(pool, raw)
        logger.info("Loaded %d %s record(s)", len(records), pool.value)
        return records

    def _fetch(self, pool: ReferencePool) -> bytes:
        """Synchronous download or file read (runs in thread pool)."""
        object_path = self._paths[pool].lstrip("/")
        parsed = urlparse(self._base_url)

        if parsed.scheme in ("http", "https"):
            url = self._base_url.rstrip("/") + "/" + object_path
            logger.debug("Fetching reference data from %s", url)
            try:
                response = requests.get(url, timeout=self._timeout)
            except requests.exceptions.Timeout:
                raise UpstreamUnavailableError(
                    f"Reference data request timed out after {self._timeout}s: {url}"
                )
            except requests.exceptions.RequestException as e:
                raise UpstreamUnavailableError(
                    f"Reference data source unreachable at {url}: {e}"
                ) from e
            if not response.ok:
                raise UpstreamUnavailableError(
                    f"Reference data source returned HTTP {response.status_code} for {url}"
                )
            return response.content

        root = Path(parsed.path) if parsed.scheme == "file" else Path(self._base_url)
        try:
            return (root / object_path).read_bytes()
        except OSError as e:
            raise UpstreamUnavailableError(
                f"Reference data file unreadable: {root / object_path}: {e}"
            ) from e


# ---------------------------------------------------------------------------
# Parsing (module-level so it can be exercised without I/O)
# ---------------------------------------------------------------------------

def parse_pool(pool: ReferencePool, raw: bytes) -> list[ReferenceRecord]:
    """Parse one CSV export into ReferenceRecords.

    Raises:
        UpstreamUnavailableError: undecodable, empty or malformed CSV, or a
            missing id/name column.
    """
    df = _read_frame(pool, raw)
    columns = _resolve_columns(pool, list(df.columns))

    records: list[ReferenceRecord] = []
    skipped = 0
    for row in df.to_dict(orient="records"):
        record_id = _text(row, columns.get("id"))
        if not record_id:
            skipped += 1
            continue
        records.append(ReferenceRecord(
            id=record_id,
            name=_text(row, columns.get("name")),
            address=_text(row, columns.get("address")),
            phone_number=_text(row, columns.get("phone_number")),
            latitude=_coordinate(row, columns.get("latitude")),
            longitude=_coordinate(row, columns.get("longitude")),
            kind=_text(row, columns.get("kind")),
        ))

    if skipped:
        logger.warning("Skipped %d %s row(s) without an id", skipped, pool.value)
    return records


def _read_frame(pool: ReferencePool, raw: bytes) -> pd.DataFrame:
    text: Optional[str] = None
    for encoding in _ENCODINGS:
        try:
            text = raw.decode(encoding)
            break
        except UnicodeDecodeError:
            continue
    if text is None:
        raise UpstreamUnavailableError(f"Reference data '{pool.value}' is not valid text.")

    try:
        return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise UpstreamUnavailableError(
            f"Reference data '{pool.value}' could not be parsed: {e}"
        ) from e


def _resolve_columns(pool: ReferencePool, headers: list[str]) -> dict[str, str]:
    aliases = {**_COMMON_ALIASES, **_POOL_ALIASES[pool]}
    stripped = {h.strip(): h for h in headers}

    resolved: dict[str, str] = {}
    for field_name, candidates in aliases.items():
        for candidate in candidates:
            if candidate in stripped:
                resolved[field_name] = stripped[candidate]
                break

    missing = [f for f in _REQUIRED_FIELDS if f not in resolved]
    if missing:
        raise UpstreamUnavailableError(
            f"Reference data '{pool.value}' is missing column(s): {', '.join(missing)}"
        )
    return resolved


def _text(row: dict, column: Optional[str]) -> str:
    if column is None:
        return ""
    value = row.get(column)
    return str(value).strip() if value is not None else ""


def _coordinate(row: dict, column: Optional[str]) -> Optional[float]:
    raw = _text(row, column)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return None if math.isnan(value) or math.isinf(value) else value


def _filter(records: list[ReferenceRecord], term: Optional[str]) -> list[ReferenceRecord]:
    if term is None or not term.strip():
        return records
    return [r for r in records if r.matches(term)]
