from __future__ import annotations

from typing import Any


class LmsError(Exception):
    """Base class for validation failures surfaced to the administrative caller.

    `context` carries the identifiers needed to build an actionable message
    (game id, round number, participant / team identifiers).
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({ctx})"


class NotFoundError(LmsError):
    pass


class InvalidStateError(LmsError):
    pass


class DuplicateNameError(LmsError):
    pass


class DuplicateParticipantError(LmsError):
    pass


class DuplicatePickError(LmsError):
    pass


class TeamAlreadyUsedError(LmsError):
    pass


class RoundClosedError(LmsError):
    pass


class ParticipantInactiveError(LmsError):
    pass


class NoTeamsAvailableError(LmsError):
    pass


class MissingResultError(LmsError):
    pass


class StorageError(Exception):
    """Infrastructure failure (connectivity, constraint violation) from the store.

    Always raised after the enclosing transaction was rolled back.
    """

    def __init__(self, message: str, original: Exception | None = None):
        super().__init__(message)
        self.original = original
