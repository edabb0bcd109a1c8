"""Authenticated spreadsheet gateway: service account auth and values reads."""

from .errors import (
    AuthExchangeError,
    ConfigurationError,
    ErrorKind,
    GatewayError,
    GatewayResult,
    InvalidCredentials,
    InvalidSchema,
    KeyFormatError,
    SheetFetchError,
)
from .sheets import RawGrid, SheetsGateway

__all__ = [
    "AuthExchangeError",
    "ConfigurationError",
    "ErrorKind",
    "GatewayError",
    "GatewayResult",
    "InvalidCredentials",
    "InvalidSchema",
    "KeyFormatError",
    "RawGrid",
    "SheetFetchError",
    "SheetsGateway",
]
