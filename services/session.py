from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionContext:
    """Identity of the signed-in user, passed explicitly to per-user operations."""

    user_id: str

    @classmethod
    def from_user_id(cls, user_id: str | None) -> "SessionContext":
        candidate = (user_id or "").strip()
        if not candidate:
            raise PermissionError("A signed-in user is required.")
        return cls(user_id=candidate)
