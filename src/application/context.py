"""
application.context - Request-scoped caller context.

Every workflow call receives the calling principal explicitly. The
boundary layer builds it from whatever authentication it uses; the core
trusts it without re-verifying credentials.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from domain.exceptions import ForbiddenError
from domain.models import Role


@dataclass(frozen=True)
class AuthContext:
    """The calling principal.

    Attributes:
        user_id:     Opaque id of the caller (shared with reference pools).
        role:        The caller's role.
        request_id:  Unique per request, for tracing/logging.
    """
    user_id: str
    role: Role
    request_id: str = field(default_factory=lambda: uuid4().hex)

    def require(self, role: Role) -> None:
        """Raise ForbiddenError unless the caller has ``role``."""
        if self.role != role:
            raise ForbiddenError(
                f"Role {self.role.value} may not perform this action "
                f"(requires {role.value})."
            )
