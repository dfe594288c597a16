"""
application.services.reference_data - Search and proximity over the pools.

Thin service over ReferenceDataGateway + GeoIndex for lookups that are not
part of the allocation itself: free-text search per pool or across all
three, and "nearest N" per pool from a validated coordinate.
"""

from __future__ import annotations

import asyncio
import logging

from domain.exceptions import InvalidArgumentError, InvalidLimitError
from domain.geo import nearest
from domain.models import GeoPoint, ReferencePool, ReferenceRecord
from domain.ports import ReferenceDataGateway
from application.dto import SearchResult

logger = logging.getLogger(__name__)


class ReferenceDataService:
    """Search and nearby queries over restaurants, recipients and food-banks."""

    def __init__(
        self,
        gateway: ReferenceDataGateway,
        default_limit: int = 10,
        max_limit: int = 100,
    ):
        self._gateway = gateway
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def search(self, pool: ReferencePool, term: str = "") -> list[ReferenceRecord]:
        """Case-insensitive substring search; blank term returns the whole pool."""
        pool = ReferencePool(pool)
        term = term or ""
        if pool is ReferencePool.RESTAURANTS:
            return await self._gateway.search_restaurants(term)
        if pool is ReferencePool.RECIPIENTS:
            return await self._gateway.search_recipients(term)
        return await self._gateway.search_foodbanks(term)

    async def search_all(self, term: str) -> SearchResult:
        """Search all three pools at once. A blank term is rejected."""
        if not term or not term.strip():
            raise InvalidArgumentError("A search term is required.")
        term = term.strip()

        restaurants, recipients, foodbanks = await asyncio.gather(
            self._gateway.search_restaurants(term),
            self._gateway.search_recipients(term),
            self._gateway.search_foodbanks(term),
        )
        result = SearchResult(
            term=term,
            restaurants=restaurants,
            recipients=recipients,
            foodbanks=foodbanks,
        )
        logger.info("Search '%s' matched %d record(s)", term, result.counts["total"])
        return result

    async def nearby(
        self,
        pool: ReferencePool,
        latitude: object,
        longitude: object,
        limit: int | None = None,
    ) -> list[ReferenceRecord]:
        """Up to ``limit`` records of ``pool`` closest to the given point."""
        origin = GeoPoint.validated(latitude, longitude)
        limit = self._default_limit if limit is None else limit
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= self._max_limit:
            raise InvalidLimitError(
                f"limit must be between 1 and {self._max_limit}, got {limit!r}."
            )
        records = await self.search(pool, "")
        return nearest(origin, records, limit)
