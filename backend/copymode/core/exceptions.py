"""
Service-level exceptions mapped to HTTP responses in main.py.
"""
from typing import Optional


class CopyModeError(Exception):
    """Base error. Carries the HTTP status the API should answer with."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(CopyModeError):
    status_code = 404


class BadRequestError(CopyModeError):
    status_code = 400


class ConfigurationError(CopyModeError):
    """A required server-side setting (API key, etc.) is missing."""
    status_code = 500


class UpstreamAPIError(CopyModeError):
    """An LLM vendor call failed. status_code mirrors the vendor's response."""
    status_code = 502
