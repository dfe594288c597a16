"""
application.services.donations - DonationLedger.

Owns Donation state: creation with input validation, lookups, status
transitions along the state machine, and the available-donations listing.

    AVAILABLE ──► REQUESTED ──► CONFIRMED
"""

from __future__ import annotations

import dataclasses
import logging
import math
from datetime import date, datetime
from typing import Callable, Optional

from domain.entities import Donation
from domain.exceptions import (
    InvalidArgumentError,
    InvalidDateError,
    InvalidQuantityError,
    InvalidTransitionError,
    NotFoundError,
)
from domain.geo import distance_to, locate_by_name, nearest
from domain.models import DonationStatus, DonationWithRestaurant, GeoPoint
from domain.ports import DonationRepository, ReferenceDataGateway, RestaurantRepository

logger = logging.getLogger(__name__)


def parse_expiration_date(value: object) -> date:
    """Coerce ``value`` to a calendar date or raise InvalidDateError.

    Accepts date, datetime (date part) and ISO ``YYYY-MM-DD`` strings.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDateError(
        f"Expiration date must be a valid date (YYYY-MM-DD), got {value!r}."
    )


class DonationLedger:
    """Persistence-backed owner of Donation state."""

    def __init__(
        self,
        donation_repo: DonationRepository,
        restaurant_repo: RestaurantRepository,
        clock: Callable[[], date] = date.today,
        gateway: Optional[ReferenceDataGateway] = None,
    ):
        self._donation_repo = donation_repo
        self._restaurant_repo = restaurant_repo
        self._clock = clock
        self._gateway = gateway

    def today(self) -> date:
        return self._clock()

    async def create(
        self,
        restaurant_id: int,
        item_name: str,
        category: str,
        quantity: int,
        expiration_date: object,
    ) -> Donation:
        """Register a new AVAILABLE donation for ``restaurant_id``.

        Raises:
            InvalidQuantityError: quantity is not a positive integer.
            InvalidDateError:     expiration_date is not a real date.
            InvalidArgumentError: item_name is blank.
            NotFoundError:        the restaurant does not exist.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(
                f"Quantity must be a positive integer, got {quantity!r}."
            )
        expires = parse_expiration_date(expiration_date)
        if not item_name or not item_name.strip():
            raise InvalidArgumentError("Item name is required.")

        restaurant = await self._restaurant_repo.get_by_id(restaurant_id)
        if restaurant is None:
            raise NotFoundError(f"Restaurant {restaurant_id} not found.")

        donation = Donation(
            restaurant_id=restaurant_id,
            item_name=item_name.strip(),
            category=(category or "").strip(),
            quantity=quantity,
            expiration_date=expires,
            status=DonationStatus.AVAILABLE,
        )
        donation.id = await self._donation_repo.save(donation)
        logger.info(
            "Donation %d created: %s x%d (restaurant=%d, expires=%s)",
            donation.id, donation.item_name, quantity, restaurant_id, expires,
        )
        return await self.find_by_id(donation.id)

    async def create_for_manager(
        self,
        manager_id: str,
        item_name: str,
        category: str,
        quantity: int,
        expiration_date: object,
    ) -> Donation:
        """Create a donation on behalf of the donor who manages a restaurant."""
        restaurant = await self._restaurant_repo.get_by_manager(manager_id)
        if restaurant is None:
            raise NotFoundError(f"No restaurant registered for donor {manager_id}.")
        return await self.create(
            restaurant.id, item_name, category, quantity, expiration_date,
        )

    async def find_by_id(self, donation_id: int) -> Donation:
        donation = await self._donation_repo.get_by_id(donation_id)
        if donation is None:
            raise NotFoundError(f"Donation {donation_id} not found.")
        return donation

    async def update_status(self, donation_id: int, new_status: DonationStatus) -> Donation:
        """Move a donation along one edge of its state machine.

        Raises:
            NotFoundError:          unknown donation.
            InvalidTransitionError: not an allowed edge, or the status
                                    changed concurrently.
        """
        donation = await self.find_by_id(donation_id)
        current = donation.status
        if not current.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Donation {donation_id} cannot move from {current.value} to {new_status.value}."
            )

        updated = await self._donation_repo.compare_and_set_status(
            donation_id, current, new_status,
        )
        if not updated:
            raise InvalidTransitionError(
                f"Donation {donation_id} changed status concurrently; "
                f"expected {current.value}."
            )
        logger.info("Donation %d: %s -> %s", donation_id, current.value, new_status.value)
        return await self.find_by_id(donation_id)

    async def list_available(
        self,
        origin: Optional[GeoPoint] = None,
    ) -> list[DonationWithRestaurant]:
        """AVAILABLE, unexpired donations with their restaurant's location.

        With ``origin``: closest restaurant first, rows without coordinates
        last, each row carrying ``distance_km``. Without: newest first.

        Restaurants without stored coordinates are located by name in the
        restaurant pool; the pool is only fetched when such rows exist.
        """
        rows = await self._donation_repo.list_available(self.today())
        if origin is None:
            return rows
        return rank_by_distance(origin, await self._locate_missing(rows))

    async def _locate_missing(
        self,
        rows: list[DonationWithRestaurant],
    ) -> list[DonationWithRestaurant]:
        unlocated = [r for r in rows if r.latitude is None or r.longitude is None]
        if not unlocated or self._gateway is None:
            return rows

        pool = await self._gateway.list_restaurants()
        located = {}
        for row in unlocated:
            point = locate_by_name(pool, row.restaurant_name)
            if point is not None:
                located[row.donation_id] = point
        logger.debug(
            "Located %d/%d restaurant(s) via reference pool",
            len(located), len(unlocated),
        )
        return [
            dataclasses.replace(
                r,
                latitude=located[r.donation_id].latitude,
                longitude=located[r.donation_id].longitude,
            ) if r.donation_id in located else r
            for r in rows
        ]


def rank_by_distance(
    origin: GeoPoint,
    rows: list[DonationWithRestaurant],
) -> list[DonationWithRestaurant]:
    """Order rows via GeoIndex and annotate each with ``distance_km``."""
    if not rows:
        return []
    ranked = nearest(origin, rows, limit=len(rows))
    annotated = []
    for row in ranked:
        distance = distance_to(origin, row)
        annotated.append(dataclasses.replace(
            row, distance_km=None if math.isinf(distance) else round(distance, 3),
        ))
    return annotated
