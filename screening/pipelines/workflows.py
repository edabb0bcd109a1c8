"""End-to-end flows shared by the HTTP API and the CLI.

Login: gateway read of the login sheet -> credential check.
Candidates: gateway read of the dashboard sheet -> record normalization.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..config import SheetSettings
from ..gateway.errors import ErrorKind, GatewayError, GatewayResult, SheetFetchError
from ..gateway.sheets import SheetsGateway
from .credentials import INVALID_SHEET_MESSAGE, check_credentials
from .records import CandidateRecord, normalize_records

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "Access denied. Confirm SA has sheet access & API enabled."
SHEET_DATA_FAILED_MESSAGE = "Failed to fetch sheet data"

UPSTREAM_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.CONFIGURATION: "Service Account configuration error",
    ErrorKind.KEY_FORMAT: "Invalid Service Account key format",
    ErrorKind.AUTH_EXCHANGE: "Service Account auth failed",
    ErrorKind.SHEET_FETCH: SHEET_DATA_FAILED_MESSAGE,
}


def upstream_error_message(error: GatewayError) -> str:
    """Client-facing message for an infrastructure/config/auth failure."""
    if isinstance(error, SheetFetchError) and error.access_denied:
        return ACCESS_DENIED_MESSAGE
    return UPSTREAM_ERROR_MESSAGES.get(error.kind, SHEET_DATA_FAILED_MESSAGE)


@dataclass(frozen=True)
class LoginOutcome:
    """Result of a login attempt, shaped for the wire.

    ``error`` is set for system faults (HTTP 500); ``valid``/``message``
    otherwise (HTTP 200).
    """
    valid: bool = False
    message: str | None = None
    error: str | None = None

    @property
    def status_code(self) -> int:
        return 500 if self.error is not None else 200

    def to_body(self) -> dict:
        if self.error is not None:
            return {"error": self.error}
        if self.valid:
            return {"valid": True}
        return {"valid": False, "message": self.message}


async def validate_login(
    gateway: SheetsGateway,
    sheets: SheetSettings,
    login_name: Any,
    password: Any,
) -> LoginOutcome:
    """Validate a login name/password pair against the login sheet."""
    grid = await gateway.read_range(sheets.login_spreadsheet_id, sheets.login_range)
    if not grid.ok:
        return LoginOutcome(error=upstream_error_message(grid.error))

    result = check_credentials(grid.value, login_name, password)
    if result.ok:
        return LoginOutcome(valid=True)
    if result.kind is ErrorKind.INVALID_SCHEMA:
        return LoginOutcome(message=INVALID_SHEET_MESSAGE)
    return LoginOutcome(message=result.error.message)


async def load_candidates(
    gateway: SheetsGateway,
    sheets: SheetSettings,
) -> GatewayResult[list[CandidateRecord]]:
    """Fetch the dashboard sheet and normalize it into candidate records."""
    grid = await gateway.read_range(sheets.dashboard_spreadsheet_id, sheets.dashboard_range)
    if not grid.ok:
        return GatewayResult.failure(grid.error)
    return GatewayResult.success(normalize_records(grid.value))
