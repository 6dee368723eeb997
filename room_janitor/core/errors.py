# room_janitor/core/errors.py

from __future__ import annotations

from typing import List, Optional


class JanitorError(Exception):
    """Base class for all janitor errors."""


class ConfigurationError(JanitorError):
    """
    Raised when startup parameters are missing or invalid.

    Fatal: the process exits before the polling loop starts.

    Attributes:
        errors: One operator-facing message per violated parameter
    """

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class TransportError(JanitorError):
    """Raised when a call to the remote directory fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DirectoryListError(TransportError):
    """Raised when the room listing fails. Fatal to the whole process."""


class RoomFetchError(TransportError):
    """Raised when room detail or statistics cannot be fetched."""


class ArchiveUpdateError(TransportError):
    """Raised when the archive mutation is rejected or fails."""


class TimestampParseError(JanitorError, ValueError):
    """Raised when a room's last-active value is not a zoned timestamp."""


class ListenerError(JanitorError):
    """Raised when an observability listener fails to come up. Fatal."""
