"""
application.services.matches - MatchLedger.

Owns Match state and its audit trail:
    1. create_for_donation: precondition checks, nearest food-bank
       resolution, then one atomic write (match + donation claim + log)
    2. accept / reject / complete: conditional status changes, each with
       exactly one MatchLog row
    3. listings for food-bank triage

Food-bank resolution is nearest-by-distance over food-banks with known
coordinates only. An empty or unlocated pool raises NoFoodBankAvailableError;
there is no "any food-bank" fallback.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from domain.entities import Match, MatchLog
from domain.exceptions import (
    DonationExpiredError,
    DonationNotAvailableError,
    DuplicateMatchError,
    InvalidArgumentError,
    InvalidStateError,
    MissingActorError,
    NoFoodBankAvailableError,
    NotFoundError,
    UpstreamUnavailableError,
)
from domain.geo import locate_by_name, nearest_one
from domain.models import (
    NO_DATA,
    DonationStatus,
    GeoPoint,
    MatchDetail,
    MatchStatus,
    ReferenceRecord,
)
from domain.ports import DonationRepository, MatchRepository, ReferenceDataGateway
from application.services.donations import DonationLedger

logger = logging.getLogger(__name__)


class MatchLedger:
    """Persistence-backed owner of Match state and the MatchLog trail."""

    def __init__(
        self,
        match_repo: MatchRepository,
        donation_repo: DonationRepository,
        donations: DonationLedger,
        gateway: ReferenceDataGateway,
    ):
        self._match_repo = match_repo
        self._donation_repo = donation_repo
        self._donations = donations
        self._gateway = gateway

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_for_donation(self, donation_id: int, recipient_id: str) -> Match:
        """Claim ``donation_id`` for ``recipient_id`` and assign a food-bank.

        Raises:
            MissingActorError:         recipient_id is blank.
            NotFoundError:             unknown donation.
            DuplicateMatchError:       the donation already has a match.
            DonationNotAvailableError: the donation is not AVAILABLE.
            DonationExpiredError:      the expiration date has passed.
            UpstreamUnavailableError:  the food-bank pool could not be read.
            NoFoodBankAvailableError:  no located food-bank, or the restaurant
                                       cannot be located.
        """
        if not recipient_id:
            raise MissingActorError("A recipient id is required to claim a donation.")

        donation = await self._donations.find_by_id(donation_id)

        existing = await self._match_repo.get_by_donation(donation_id)
        if existing is not None:
            raise DuplicateMatchError(
                f"Donation {donation_id} already has match {existing.id}."
            )
        if donation.status != DonationStatus.AVAILABLE:
            raise DonationNotAvailableError(
                f"Donation {donation_id} is {donation.status.value}, not AVAILABLE."
            )
        if donation.is_expired(self._donations.today()):
            raise DonationExpiredError(
                f"Donation {donation_id} expired on {donation.expiration_date}."
            )

        food_bank = await self.resolve_food_bank(donation_id)

        match = Match(
            donation_id=donation_id,
            recipient_id=recipient_id,
            food_bank_id=food_bank.id,
            status=MatchStatus.PENDING,
        )
        log = MatchLog(
            actor_id=recipient_id,
            previous_status=None,
            new_status=MatchStatus.PENDING,
            notes=f"Requested by recipient; assigned to food-bank {food_bank.id}",
        )
        match_id = await self._match_repo.create_with_claim(match, log)
        logger.info(
            "Match %d created: donation=%d recipient=%s food_bank=%s (%s)",
            match_id, donation_id, recipient_id, food_bank.id, food_bank.name,
        )
        return await self.find_by_id(match_id)

    async def resolve_food_bank(self, donation_id: int) -> ReferenceRecord:
        """Nearest food-bank to the donation's restaurant.

        The restaurant is located by its stored coordinates, else by its
        name in the restaurant pool. An unlocatable restaurant raises
        NoFoodBankAvailableError rather than picking an arbitrary one.
        """
        restaurant = await self._donation_repo.get_restaurant(donation_id)
        if restaurant is None:
            raise NotFoundError(f"Restaurant for donation {donation_id} not found.")

        pool = await self._gateway.list_foodbanks()
        if not pool:
            raise NoFoodBankAvailableError("The food-bank pool is empty.")
        candidates = [
            fb for fb in pool if fb.latitude is not None and fb.longitude is not None
        ]
        if not candidates:
            raise NoFoodBankAvailableError(
                f"None of the {len(pool)} food-bank(s) in the pool has a known location."
            )

        if restaurant.latitude is not None and restaurant.longitude is not None:
            origin = GeoPoint(restaurant.latitude, restaurant.longitude)
        else:
            origin = locate_by_name(await self._gateway.list_restaurants(), restaurant.name)
        if origin is None:
            raise NoFoodBankAvailableError(
                f"Restaurant {restaurant.id} has no known location to rank food-banks from."
            )

        chosen = nearest_one(origin, candidates)
        if chosen is None:
            raise NoFoodBankAvailableError("No food-bank could be resolved.")
        return chosen

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def accept(self, match_id: int, food_bank_id: Optional[str], notes: str = "") -> Match:
        """PENDING → ACCEPTED, recording ``food_bank_id`` as the handler."""
        if not food_bank_id:
            raise MissingActorError("A food-bank id is required to accept a match.")
        return await self._transition(
            match_id,
            expected=MatchStatus.PENDING,
            new_status=MatchStatus.ACCEPTED,
            actor_id=food_bank_id,
            notes=notes,
            food_bank_id=food_bank_id,
        )

    async def reject(self, match_id: int, actor_id: Optional[str] = None, notes: str = "") -> Match:
        """PENDING → REJECTED.

        The donation is not released; it stays REQUESTED.
        """
        match = await self.find_by_id(match_id)
        return await self._transition(
            match_id,
            expected=MatchStatus.PENDING,
            new_status=MatchStatus.REJECTED,
            actor_id=actor_id or match.food_bank_id or "",
            notes=notes,
        )

    async def complete(self, match_id: int, actor_id: str, notes: str = "") -> Match:
        """ACCEPTED → COMPLETED, confirming the donation in the same write."""
        if not actor_id:
            raise MissingActorError("An actor id is required to complete a match.")
        return await self._transition(
            match_id,
            expected=MatchStatus.ACCEPTED,
            new_status=MatchStatus.COMPLETED,
            actor_id=actor_id,
            notes=notes,
            confirm_donation=True,
        )

    async def _transition(
        self,
        match_id: int,
        expected: MatchStatus,
        new_status: MatchStatus,
        actor_id: str,
        notes: str = "",
        food_bank_id: Optional[str] = None,
        confirm_donation: bool = False,
    ) -> Match:
        match = await self.find_by_id(match_id)
        if match.status != expected:
            raise InvalidStateError(
                f"Match {match_id} is {match.status.value}; "
                f"{new_status.value} requires {expected.value}."
            )

        log = MatchLog(
            match_id=match_id,
            actor_id=actor_id,
            previous_status=expected,
            new_status=new_status,
            notes=notes,
        )
        changed = await self._match_repo.transition(
            match_id,
            expected,
            log,
            food_bank_id=food_bank_id,
            confirm_donation=confirm_donation,
        )
        if not changed:
            current = await self.find_by_id(match_id)
            raise InvalidStateError(
                f"Match {match_id} changed concurrently; now {current.status.value}."
            )

        logger.info(
            "Match %d: %s -> %s (actor=%s)",
            match_id, expected.value, new_status.value, actor_id,
        )
        return await self.find_by_id(match_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_id(self, match_id: int) -> Match:
        match = await self._match_repo.get_by_id(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found.")
        return match

    async def history(self, match_id: int) -> list[MatchLog]:
        """Audit trail for ``match_id``, oldest first."""
        await self.find_by_id(match_id)
        return await self._match_repo.get_logs(match_id)

    async def list_pending_for_review(self) -> list[MatchDetail]:
        """Food-bank triage queue, oldest request first."""
        return await self._match_repo.list_details(MatchStatus.PENDING)

    async def list_accepted_for(self, food_bank_id: str) -> list[MatchDetail]:
        """ACCEPTED matches handled by ``food_bank_id`` with recipient contacts.

        Contacts come from the recipient pool, merged by id. Recipients
        missing from the pool (or an unreachable pool) yield "no data".
        """
        if not food_bank_id or not str(food_bank_id).strip():
            raise InvalidArgumentError("A food-bank id is required.")

        details = await self._match_repo.list_details(
            MatchStatus.ACCEPTED, food_bank_id=str(food_bank_id).strip(),
        )
        if not details:
            return details

        try:
            recipients = await self._gateway.list_recipients()
        except UpstreamUnavailableError as e:
            logger.warning("Recipient contacts unavailable for food-bank %s: %s", food_bank_id, e)
            recipients = []

        by_id = {r.id: r for r in recipients}
        return [_with_contact(d, by_id.get(d.recipient_id)) for d in details]


def _with_contact(detail: MatchDetail, record: Optional[ReferenceRecord]) -> MatchDetail:
    if record is None:
        return dataclasses.replace(
            detail,
            recipient_phone=NO_DATA,
            recipient_contact_address=NO_DATA,
        )
    return dataclasses.replace(
        detail,
        recipient_name=detail.recipient_name or record.name or NO_DATA,
        recipient_phone=record.phone_number or NO_DATA,
        recipient_contact_address=record.address or NO_DATA,
    )
