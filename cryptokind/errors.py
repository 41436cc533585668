"""
Exception hierarchy shared by the stores, the upstream client and the API.

The HTTP layer maps each class to a status code in one place
(``cryptokind.api.errors``); everything below the routers only raises.
"""

from __future__ import annotations

from typing import Any


class CryptoKindError(Exception):
    """Base class for all application errors."""


class InvalidRequestError(CryptoKindError):
    """A required parameter is missing or a value is outside its allowed set."""


class NotFoundError(CryptoKindError):
    """The addressed resource does not exist."""


class UpstreamError(CryptoKindError):
    """The market-data API could not be reached or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NoCredentialsError(UpstreamError):
    """No API key is configured, so no upstream call can be made."""

    def __init__(self, message: str = "No API keys available") -> None:
        super().__init__(message)


class PersistenceError(CryptoKindError):
    """A database or file write failed."""


class KeyStoreError(PersistenceError):
    """The key file could not be written."""
