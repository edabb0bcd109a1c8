"""Error taxonomy for the spreadsheet gateway and the tagged result type.

Leaf operations raise a ``GatewayError`` subclass. Operations that cross the
gateway boundary catch those and hand back a ``GatewayResult`` so callers
have to branch on the error kind explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Enumerated gateway failure kinds."""
    CONFIGURATION = "configuration"
    KEY_FORMAT = "key_format"
    AUTH_EXCHANGE = "auth_exchange"
    SHEET_FETCH = "sheet_fetch"
    INVALID_SCHEMA = "invalid_schema"
    INVALID_CREDENTIALS = "invalid_credentials"


class GatewayError(Exception):
    """Base class for every gateway failure."""
    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (upstream status {self.status_code})"
        return self.message


class ConfigurationError(GatewayError):
    """Required environment configuration is missing."""
    kind = ErrorKind.CONFIGURATION


class KeyFormatError(GatewayError):
    """Service account JSON or private key cannot be parsed."""
    kind = ErrorKind.KEY_FORMAT


class AuthExchangeError(GatewayError):
    """OAuth token request failed or returned no token."""
    kind = ErrorKind.AUTH_EXCHANGE


class SheetFetchError(GatewayError):
    """Spreadsheet read failed."""
    kind = ErrorKind.SHEET_FETCH

    @property
    def access_denied(self) -> bool:
        return self.status_code == 403


class InvalidSchema(GatewayError):
    """Expected header columns are absent."""
    kind = ErrorKind.INVALID_SCHEMA


class InvalidCredentials(GatewayError):
    """Well-formed login request with no matching row."""
    kind = ErrorKind.INVALID_CREDENTIALS


@dataclass(frozen=True)
class GatewayResult(Generic[T]):
    """Either a success value or a GatewayError, never both."""
    value: T | None = None
    error: GatewayError | None = None

    @classmethod
    def success(cls, value: T) -> GatewayResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: GatewayError) -> GatewayResult[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
