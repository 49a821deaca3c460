"""Barrier error taxonomy.

Attempt-level errors (registration, listing, fetch) abort the whole barrier
attempt. DecodeError is local to one peer's payload and never leaves the
leader's aggregation round.
"""

from __future__ import annotations


class BarrierError(Exception):
    """Base class for barrier failures."""


class RegistrationError(BarrierError):
    """Raised when the root path or the participant node cannot be created."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        message = f"Registration rejected for {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ListingError(BarrierError):
    """Raised when listing the barrier's children fails."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        message = f"Could not list children of {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class FetchError(BarrierError):
    """Raised when reading a participant's payload fails at session level."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        message = f"Could not fetch payload of {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DecodeError(BarrierError):
    """Raised when a participant payload is not valid."""
