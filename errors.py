"""Exception types raised by the clockin managers."""

from __future__ import annotations

from datetime import date


class ClockinError(Exception):
    """Base class for all clockin errors."""


class ValidationError(ClockinError):
    """Input has the wrong shape or is out of range."""


class ConflictError(ClockinError):
    """The operation would claim a date that is already taken."""

    def __init__(self, message: str, dates: list[date] | None = None):
        super().__init__(message)
        self.dates = dates or []


class NotFoundError(ClockinError):
    """A session, entry or holiday set does not exist."""


class ConfigError(ClockinError):
    """Configuration is missing or invalid."""


class StorageError(ClockinError):
    """A persisted store exists but cannot be read."""


class HolidaySourceError(ClockinError):
    """The holiday data source returned nothing for a region."""
