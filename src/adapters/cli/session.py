"""
adapters.cli.session - Local caller identity storage.

The identity (user id + role) the CLI acts as is stored in
~/.food-share/session.json (or $FOOD_SHARE_HOME/session.json) so each
command does not need it repeated. The CLI trusts this file; it is a
stand-in for whatever authentication a real boundary layer performs.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path

from domain.models import Role


def _session_file() -> Path:
    home = os.getenv("FOOD_SHARE_HOME")
    session_dir = Path(home) if home else Path.home() / ".food-share"
    return session_dir / "session.json"


@dataclass
class Session:
    user_id: str
    role: str

    def __post_init__(self) -> None:
        # raises ValueError for an unknown role
        self.role = Role(self.role).value

    @property
    def role_enum(self) -> Role:
        return Role(self.role)


def load_session() -> Session | None:
    """Return the stored identity, or None if none is set or it is unreadable."""
    path = _session_file()
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Session(**data)
    except (ValueError, TypeError):
        return None


def save_session(session: Session) -> None:
    """Persist the identity to disk."""
    path = _session_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(session), indent=2), encoding="utf-8")


def clear_session() -> None:
    """Delete the stored identity."""
    path = _session_file()
    if path.exists():
        path.unlink()
