"""Errors raised by quota fetchers and the management API client.

Loaders convert both into an error QuotaState; neither type is meant to
reach a renderer.
"""

from typing import Optional


class QuotaFetchError(Exception):
    """Network or transport failure, with the HTTP status if known."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class QuotaValidationError(Exception):
    """The provider answered, but the payload did not have the expected shape."""
