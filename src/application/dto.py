"""
application.dto - Data Transfer Objects for service output.

These are the structured results that the workflow returns to callers
(CLI adapter, or any transport layer built on top).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.entities import Match
from domain.models import MatchStatus, ReferenceRecord


@dataclass(frozen=True)
class MatchSummary:
    """Result of an allocation or review step."""
    match_id: int
    donation_id: int
    recipient_id: str
    food_bank_id: Optional[str]
    status: MatchStatus

    @classmethod
    def from_match(cls, match: Match) -> MatchSummary:
        return cls(
            match_id=match.id,
            donation_id=match.donation_id,
            recipient_id=match.recipient_id,
            food_bank_id=match.food_bank_id,
            status=match.status,
        )

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "donation_id": self.donation_id,
            "recipient_id": self.recipient_id,
            "food_bank_id": self.food_bank_id,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class SearchResult:
    """Combined search over all three reference pools."""
    term: str
    restaurants: list[ReferenceRecord]
    recipients: list[ReferenceRecord]
    foodbanks: list[ReferenceRecord]

    @property
    def counts(self) -> dict[str, int]:
        return {
            "restaurants": len(self.restaurants),
            "recipients": len(self.recipients),
            "foodbanks": len(self.foodbanks),
            "total": len(self.restaurants) + len(self.recipients) + len(self.foodbanks),
        }
