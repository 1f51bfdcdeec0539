"""Mini README: Error taxonomy shared by the records, store and engine layers.

Structure:
    * FestivalFundError - base class for every domain failure.
    * ValidationError - bad input rejected before any write is attempted.
    * NotFoundError - update/delete referencing an unknown identifier.
    * TransientIOError - store unavailable, stalled or timed out.
    * AuthenticationError - missing, expired or invalid admin credentials.

``ValidationError`` and ``NotFoundError`` also derive from ``ValueError`` and
``KeyError`` so callers written against the built-in exceptions keep
working. Concurrent edits are not detected; the store applies the last write.
"""

from __future__ import annotations


class FestivalFundError(Exception):
    """Base class for festivalfund failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(FestivalFundError, ValueError):
    """Input failed validation at the boundary."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(FestivalFundError, KeyError):
    """A record referenced by identifier does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind.capitalize()} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class TransientIOError(FestivalFundError):
    """The backing store could not be reached or did not answer in time."""


class AuthenticationError(FestivalFundError):
    """Admin credentials or session token were rejected."""


__all__ = [
    "AuthenticationError",
    "FestivalFundError",
    "NotFoundError",
    "TransientIOError",
    "ValidationError",
]
