from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ManagerScope:
    """Handle threaded into every pool/game operation.

    Teams, players and games are owned by a manager; nothing is shared
    between managers.
    """

    manager_email: str

    @classmethod
    def of(cls, manager_email: str) -> "ManagerScope":
        email = (manager_email or "").strip().lower()
        if not email:
            raise ValueError("manager_email is required")
        return cls(manager_email=email)
