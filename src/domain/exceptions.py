"""
domain.exceptions - Error taxonomy for the allocation core.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed. Every class carries a stable
``kind`` string; the boundary layer maps kinds to its own status codes.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    kind = "DomainError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    kind = "NotFound"


class InvalidArgumentError(DomainError):
    """Raised for malformed input."""

    kind = "InvalidArgument"


class InvalidQuantityError(InvalidArgumentError):
    """Raised when a donation quantity is not a positive integer."""


class InvalidDateError(InvalidArgumentError):
    """Raised when an expiration date does not parse to a calendar date."""


class InvalidLimitError(InvalidArgumentError):
    """Raised when a result limit is not a positive integer (or out of range)."""


class InvalidCoordinatesError(InvalidArgumentError):
    """Raised when latitude/longitude are non-numeric or out of range."""


class MissingActorError(InvalidArgumentError):
    """Raised when a state change requires an actor id and none was given."""


class InvalidStateError(DomainError):
    """Raised when an operation is not valid for the entity's current status."""

    kind = "InvalidState"


class InvalidTransitionError(InvalidStateError):
    """Raised when a status change is not an edge of the state machine."""


class DuplicateMatchError(DomainError):
    """Raised when a donation already has a match."""

    kind = "DuplicateMatch"


class DonationNotAvailableError(DomainError):
    """Raised when a donation is no longer AVAILABLE."""

    kind = "DonationNotAvailable"


class DonationExpiredError(DomainError):
    """Raised when a donation's expiration date has passed."""

    kind = "DonationExpired"


class NoFoodBankAvailableError(DomainError):
    """Raised when the food-bank pool yields no candidate."""

    kind = "NoFoodBankAvailable"


class UpstreamUnavailableError(DomainError):
    """Raised when the reference data source cannot be reached or parsed."""

    kind = "UpstreamUnavailable"


class ForbiddenError(DomainError):
    """Raised when the calling principal may not perform the action."""

    kind = "Forbidden"
