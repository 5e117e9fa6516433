"""
Application error hierarchy.

Each layer raises its own error type and chains the underlying exception
with ``raise ... from``, so callers can catch by layer while logs keep the
original traceback.
"""

from typing import Optional


class AppError(Exception):
    """Base class for all Flight Overhead errors."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error

    def __str__(self) -> str:
        message = super().__str__()
        if self.original_error is not None:
            return f'{message} (caused by {type(self.original_error).__name__}: {self.original_error})'
        return message


class ApiError(AppError):
    """Flight data API request or response failure."""


class StorageError(AppError):
    """Persistent key-value storage failure."""


class CacheError(AppError):
    """TTL cache read/write failure."""


class LocationError(AppError):
    """Device location could not be determined."""


class NotificationError(AppError):
    """Notification could not be delivered or cancelled."""


class FlightDetectionError(AppError):
    """Overhead flight detection cycle failed."""


class AircraftImageError(AppError):
    """Aircraft image lookup or download failed."""
