"""
application.services.allocation - AllocationWorkflow.

The entry points consumed by the boundary layer. Every call takes the
caller's AuthContext explicitly and asserts the role it requires:

    accept_donation     RECIPIENT   claim a donation → PENDING match
    review_match        FOOD_BANK   accept (assigned food-bank only) / reject
    complete_match      FOOD_BANK   hand-over done → COMPLETED, donation CONFIRMED
    register_donation   DONOR       offer a lot from the donor's restaurant

Composed state machine (donation × match):

    AVAILABLE×none → REQUESTED×PENDING → REQUESTED×{ACCEPTED|REJECTED}
                                       → CONFIRMED×COMPLETED

Ledger errors are already typed; they propagate unchanged. Nothing is
retried here.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.entities import Donation, MatchLog
from domain.exceptions import ForbiddenError, InvalidArgumentError
from domain.models import (
    DonationWithRestaurant,
    GeoPoint,
    MatchDetail,
    ReviewDecision,
    Role,
)
from application.context import AuthContext
from application.dto import MatchSummary
from application.services.donations import DonationLedger
from application.services.matches import MatchLedger

logger = logging.getLogger(__name__)


class AllocationWorkflow:
    """Orchestrates donation claims and food-bank review.

    Stateless per call. All dependencies are injected.
    """

    def __init__(
        self,
        donations: DonationLedger,
        matches: MatchLedger,
    ):
        self._donations = donations
        self._matches = matches

    # ------------------------------------------------------------------
    # Recipient side
    # ------------------------------------------------------------------

    async def accept_donation(self, ctx: AuthContext, donation_id: int) -> MatchSummary:
        """Claim ``donation_id`` for the calling recipient.

        Not idempotent: a second call for the same donation raises
        DuplicateMatchError.
        """
        ctx.require(Role.RECIPIENT)
        logger.info(
            "Recipient %s accepting donation %d (request=%s)",
            ctx.user_id, donation_id, ctx.request_id,
        )
        match = await self._matches.create_for_donation(donation_id, ctx.user_id)
        return MatchSummary.from_match(match)

    async def list_available_donations(
        self,
        ctx: AuthContext,
        origin: Optional[GeoPoint] = None,
    ) -> list[DonationWithRestaurant]:
        """Open donations, closest first when ``origin`` is given."""
        return await self._donations.list_available(origin)

    # ------------------------------------------------------------------
    # Food-bank side
    # ------------------------------------------------------------------

    async def review_match(
        self,
        ctx: AuthContext,
        match_id: int,
        decision: ReviewDecision,
        notes: str = "",
    ) -> MatchSummary:
        """Accept or reject a PENDING match.

        Only the food-bank the match was assigned to may accept it.
        """
        ctx.require(Role.FOOD_BANK)
        decision = ReviewDecision(decision)

        if decision is ReviewDecision.ACCEPT:
            match = await self._matches.find_by_id(match_id)
            self._require_assigned(ctx, match.food_bank_id, match_id)
            match = await self._matches.accept(match_id, ctx.user_id, notes=notes)
        else:
            match = await self._matches.reject(match_id, ctx.user_id, notes=notes)

        logger.info(
            "Food-bank %s %sed match %d (request=%s)",
            ctx.user_id, decision.value.lower(), match_id, ctx.request_id,
        )
        return MatchSummary.from_match(match)

    async def complete_match(self, ctx: AuthContext, match_id: int, notes: str = "") -> MatchSummary:
        """Mark an ACCEPTED match handed over; the donation becomes CONFIRMED."""
        ctx.require(Role.FOOD_BANK)
        match = await self._matches.find_by_id(match_id)
        self._require_assigned(ctx, match.food_bank_id, match_id)
        match = await self._matches.complete(match_id, ctx.user_id, notes=notes)
        return MatchSummary.from_match(match)

    async def list_pending_matches(self, ctx: AuthContext) -> list[MatchDetail]:
        return await self._matches.list_pending_for_review()

    async def list_accepted_matches(
        self,
        ctx: AuthContext,
        food_bank_id: Optional[str] = None,
    ) -> list[MatchDetail]:
        """Accepted matches of ``food_bank_id`` (default: the caller)."""
        target = food_bank_id if food_bank_id is not None else ctx.user_id
        if target is None or not str(target).strip():
            raise InvalidArgumentError("A food-bank id is required.")
        return await self._matches.list_accepted_for(str(target))

    async def match_history(self, ctx: AuthContext, match_id: int) -> list[MatchLog]:
        return await self._matches.history(match_id)

    # ------------------------------------------------------------------
    # Donor side
    # ------------------------------------------------------------------

    async def register_donation(
        self,
        ctx: AuthContext,
        item_name: str,
        category: str,
        quantity: int,
        expiration_date: object,
    ) -> Donation:
        """Offer a new lot from the calling donor's restaurant."""
        ctx.require(Role.DONOR)
        return await self._donations.create_for_manager(
            ctx.user_id, item_name, category, quantity, expiration_date,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_assigned(ctx: AuthContext, assigned: Optional[str], match_id: int) -> None:
        if assigned is not None and assigned != ctx.user_id:
            raise ForbiddenError(
                f"Match {match_id} is assigned to food-bank {assigned}, not {ctx.user_id}."
            )
