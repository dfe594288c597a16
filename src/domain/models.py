"""
domain.models - Value objects and status enums for food allocation.

These are immutable data containers with no dependencies on
infrastructure (no SQLite, no HTTP, no pandas).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from domain.exceptions import InvalidCoordinatesError


# ---------------------------------------------------------------------------
# Roles and statuses
# ---------------------------------------------------------------------------

class Role(str, Enum):
    """Role of a calling principal. Fixed at user creation."""
    DONOR = "DONOR"
    RECIPIENT = "RECIPIENT"
    FOOD_BANK = "FOOD_BANK"


class DonationStatus(str, Enum):
    """Lifecycle of an offered food lot."""
    AVAILABLE = "AVAILABLE"
    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"

    def can_transition_to(self, new_status: DonationStatus) -> bool:
        return new_status in _DONATION_TRANSITIONS[self]


_DONATION_TRANSITIONS: dict[DonationStatus, frozenset[DonationStatus]] = {
    DonationStatus.AVAILABLE: frozenset({DonationStatus.REQUESTED}),
    DonationStatus.REQUESTED: frozenset({DonationStatus.CONFIRMED}),
    DonationStatus.CONFIRMED: frozenset(),
}


class MatchStatus(str, Enum):
    """Lifecycle of a recipient's claim on a donation."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class ReviewDecision(str, Enum):
    """A food-bank's verdict on a pending match."""
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


class ReferencePool(str, Enum):
    """The three externally sourced candidate pools."""
    RESTAURANTS = "restaurants"
    RECIPIENTS = "recipients"
    FOODBANKS = "foodbanks"


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    @classmethod
    def validated(cls, latitude: object, longitude: object) -> GeoPoint:
        """Build a GeoPoint, rejecting non-numeric or out-of-range input."""
        try:
            lat = float(latitude)  # type: ignore[arg-type]
            lng = float(longitude)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise InvalidCoordinatesError(
                f"Coordinates must be numbers, got ({latitude!r}, {longitude!r})."
            )
        if math.isnan(lat) or math.isnan(lng):
            raise InvalidCoordinatesError("Coordinates must not be NaN.")
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinatesError(f"Latitude must be within [-90, 90], got {lat}.")
        if not -180.0 <= lng <= 180.0:
            raise InvalidCoordinatesError(f"Longitude must be within [-180, 180], got {lng}.")
        return cls(latitude=lat, longitude=lng)


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceRecord:
    """One row of an externally sourced pool (restaurant, recipient, food-bank).

    Coordinates are None when the source row has none or they do not parse.
    """
    id: str
    name: str = ""
    address: str = ""
    phone_number: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    kind: str = ""

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over name, address and kind."""
        needle = term.strip().lower()
        if not needle:
            return True
        return any(
            needle in value.lower()
            for value in (self.name, self.address, self.kind)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone_number": self.phone_number,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "kind": self.kind,
        }


# ---------------------------------------------------------------------------
# Read models (denormalized views for listings)
# ---------------------------------------------------------------------------

NO_DATA = "no data"


@dataclass(frozen=True)
class DonationWithRestaurant:
    """An AVAILABLE donation joined with its restaurant's location."""
    donation_id: int
    restaurant_id: int
    restaurant_name: str
    restaurant_address: str
    item_name: str
    category: str
    quantity: int
    expiration_date: date
    status: DonationStatus
    created_at: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "donation_id": self.donation_id,
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "restaurant_address": self.restaurant_address,
            "item_name": self.item_name,
            "category": self.category,
            "quantity": self.quantity,
            "expiration_date": self.expiration_date.isoformat(),
            "status": self.status.value,
            "distance_km": self.distance_km,
        }


@dataclass(frozen=True)
class MatchDetail:
    """A match joined with recipient, restaurant and donation fields.

    recipient_phone and recipient_contact_address are filled from the
    reference data pools for accepted-match listings only.
    """
    match_id: int
    donation_id: int
    status: MatchStatus
    recipient_id: str
    recipient_name: str
    recipient_address: str
    restaurant_name: str
    restaurant_address: str
    item_name: str
    category: str
    quantity: int
    expiration_date: date
    food_bank_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    recipient_phone: str = ""
    recipient_contact_address: str = ""

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "donation_id": self.donation_id,
            "status": self.status.value,
            "recipient_id": self.recipient_id,
            "recipient_name": self.recipient_name,
            "recipient_address": self.recipient_address,
            "recipient_phone": self.recipient_phone,
            "recipient_contact_address": self.recipient_contact_address,
            "restaurant_name": self.restaurant_name,
            "restaurant_address": self.restaurant_address,
            "item_name": self.item_name,
            "category": self.category,
            "quantity": self.quantity,
            "expiration_date": self.expiration_date.isoformat(),
            "food_bank_id": self.food_bank_id,
            "created_at": self.created_at,
        }
