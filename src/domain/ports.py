"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the allocation core needs without specifying HOW.
Infrastructure modules provide concrete implementations. Application
services depend only on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC; any class that
implements the methods satisfies the port without explicit inheritance,
which keeps in-memory test doubles trivial.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from domain.entities import Donation, Match, MatchLog, Restaurant, User
from domain.models import (
    DonationStatus,
    DonationWithRestaurant,
    MatchDetail,
    MatchStatus,
    ReferenceRecord,
)


# ---------------------------------------------------------------------------
# Reference data port
# ---------------------------------------------------------------------------

@runtime_checkable
class ReferenceDataGateway(Protocol):
    """Read access to the externally sourced candidate pools.

    Every call returns a fresh snapshot. Implementations raise
    UpstreamUnavailableError when the source cannot be reached or parsed.
    """

    async def list_restaurants(self) -> list[ReferenceRecord]: ...
    async def list_recipients(self) -> list[ReferenceRecord]: ...
    async def list_foodbanks(self) -> list[ReferenceRecord]: ...
    async def search_restaurants(self, term: str) -> list[ReferenceRecord]: ...
    async def search_recipients(self, term: str) -> list[ReferenceRecord]: ...
    async def search_foodbanks(self, term: str) -> list[ReferenceRecord]: ...


# ---------------------------------------------------------------------------
# Repository ports
# ---------------------------------------------------------------------------

@runtime_checkable
class UserRepository(Protocol):
    """Storage for platform principals."""

    async def save(self, user: User) -> str: ...
    async def get_by_id(self, user_id: str) -> User | None: ...


@runtime_checkable
class RestaurantRepository(Protocol):
    """CRUD operations for Restaurant entities."""

    async def save(self, restaurant: Restaurant) -> int: ...
    async def get_by_id(self, restaurant_id: int) -> Restaurant | None: ...
    async def get_by_manager(self, manager_id: str) -> Restaurant | None: ...


@runtime_checkable
class DonationRepository(Protocol):
    """Storage for Donation entities and their status column."""

    async def save(self, donation: Donation) -> int: ...
    async def get_by_id(self, donation_id: int) -> Donation | None: ...
    async def get_restaurant(self, donation_id: int) -> Restaurant | None: ...
    async def compare_and_set_status(
        self,
        donation_id: int,
        expected: DonationStatus,
        new_status: DonationStatus,
    ) -> bool: ...
    async def list_available(self, today: date) -> list[DonationWithRestaurant]: ...


@runtime_checkable
class MatchRepository(Protocol):
    """Storage for Match entities and the MatchLog audit trail.

    Multi-row writes (match + donation status + log) happen in one
    transaction inside the implementation.
    """

    async def get_by_id(self, match_id: int) -> Match | None: ...
    async def get_by_donation(self, donation_id: int) -> Match | None: ...
    async def create_with_claim(self, match: Match, log: MatchLog) -> int: ...
    async def transition(
        self,
        match_id: int,
        expected: MatchStatus,
        log: MatchLog,
        food_bank_id: str | None = None,
        confirm_donation: bool = False,
    ) -> bool: ...
    async def get_logs(self, match_id: int) -> list[MatchLog]: ...
    async def list_details(
        self,
        status: MatchStatus,
        food_bank_id: str | None = None,
    ) -> list[MatchDetail]: ...
