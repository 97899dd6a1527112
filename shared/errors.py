"""
Exception types raised by the client.
"""

from typing import Optional


class SoundstageError(Exception):
    """Base class for all client errors."""


class ApiError(SoundstageError):
    """A backend call failed (non-2xx status, timeout or connection error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(SoundstageError):
    """Input was rejected client-side, before any network call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class TransportError(SoundstageError):
    """The media transport could not load or start a source."""
