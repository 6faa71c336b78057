"""Error taxonomy shared by the scoring engine, manager and API layer."""

from __future__ import annotations


class ChallengeError(Exception):
    """Base class for errors surfaced to callers of the challenge services."""

    kind: str = "error"
    retryable: bool = False


class ValidationError(ChallengeError):
    """Raised for out-of-range or malformed input."""

    kind = "validation"


class NotFoundError(ChallengeError):
    """Raised when a group, member, submission or day record does not exist."""

    kind = "not_found"


class AuthorizationError(ChallengeError):
    """Raised when the caller may not perform the requested mutation."""

    kind = "authorization"


class ConflictError(ChallengeError):
    """Raised when a concurrent change invalidated the caller's view of a record."""

    kind = "conflict"
    retryable = True
