"""Failures of the fetch pipeline. None of them is fatal to the tray app."""
from __future__ import annotations


class FetchError(Exception):
    """Base class for everything that prevents a balance update."""


class CredentialMissing(FetchError):
    """No API key is stored yet."""


class NetworkOrHttpError(FetchError):
    """Transport failure, timeout or non-2xx response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(FetchError):
    """Response body is not JSON or does not match the profile shape."""
