"""
domain.entities - Persistence-aware types (have IDs, timestamps).

Decoupled from any persistence strategy: no SQL concerns, no DB imports.
Timestamps are set by the repository implementations, not by the entities
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from domain.models import DonationStatus, MatchStatus, Role


@dataclass
class User:
    """A platform principal. ``id`` is the opaque identifier shared with
    the reference data pools."""
    id: str = ""
    name: str = ""
    role: Role = Role.RECIPIENT
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone_number: str = ""
    created_at: str = ""


@dataclass
class Restaurant:
    """A donor-managed restaurant."""
    id: Optional[int] = None
    manager_id: str = ""
    name: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: str = ""


@dataclass
class Donation:
    """One offered food lot."""
    id: Optional[int] = None
    restaurant_id: Optional[int] = None
    item_name: str = ""
    category: str = ""
    quantity: int = 0
    expiration_date: Optional[date] = None
    status: DonationStatus = DonationStatus.AVAILABLE
    created_at: str = ""
    updated_at: str = ""

    def is_expired(self, today: date) -> bool:
        """A lot is usable only while its expiration date is after today."""
        return self.expiration_date is None or self.expiration_date <= today


@dataclass
class Match:
    """A recipient's claim against a donation."""
    id: Optional[int] = None
    donation_id: Optional[int] = None
    recipient_id: str = ""
    food_bank_id: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING
    created_at: str = ""
    updated_at: str = ""


@dataclass
class MatchLog:
    """Append-only audit row for one match status transition."""
    id: Optional[int] = None
    match_id: Optional[int] = None
    actor_id: str = ""
    previous_status: Optional[MatchStatus] = None
    new_status: MatchStatus = MatchStatus.PENDING
    notes: str = ""
    created_at: str = ""
