from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthContext:
    """
    Verified identity attached to a single request.

    Built after token verification and the user lookup; dropped when the
    request ends. ``role`` is kept as the raw stored string so that a role
    outside the known set still flows through the checker (and is denied)
    instead of failing construction.
    """

    user_id: int
    role: str
    is_active: bool = True

    def to_dict(self) -> dict[str, object]:
        return {"user_id": self.user_id, "role": self.role, "is_active": self.is_active}
