"""Login validation against the credentials spreadsheet.

Passwords are stored and compared as plain text; see DESIGN.md.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from ..gateway.errors import GatewayResult, InvalidCredentials, InvalidSchema

logger = logging.getLogger(__name__)

LOGIN_NAME_HEADER = "login name"
PASSWORD_HEADER = "password"

NO_CREDENTIALS_MESSAGE = "No credentials data found"
INVALID_SHEET_MESSAGE = "Invalid sheet format"
WRONG_CREDENTIALS_MESSAGE = "Wrong Login Name or Password."


def _trimmed(row: Sequence[Any], column: int) -> str | None:
    if column >= len(row) or row[column] is None:
        return None
    return str(row[column]).strip()


def check_credentials(
    grid: Sequence[Sequence[Any]] | None,
    login_name: Any,
    password: Any,
) -> GatewayResult[None]:
    """Scan the login sheet for a matching (login name, password) row.

    Headers are matched case-insensitively and exactly, with no aliases.
    Credentials that are not strings never match.

    Returns:
        Success when a row matches; otherwise a failure carrying
        InvalidSchema (header missing) or InvalidCredentials (no data, or
        no matching row)
    """
    if not grid or len(grid) < 2:
        return GatewayResult.failure(InvalidCredentials(NO_CREDENTIALS_MESSAGE))

    headers = ["" if h is None else str(h).strip().lower() for h in grid[0]]
    if LOGIN_NAME_HEADER not in headers or PASSWORD_HEADER not in headers:
        logger.error(f"Login sheet headers missing: found {headers}")
        return GatewayResult.failure(InvalidSchema(INVALID_SHEET_MESSAGE))

    login_col = headers.index(LOGIN_NAME_HEADER)
    password_col = headers.index(PASSWORD_HEADER)

    if not isinstance(login_name, str) or not isinstance(password, str):
        logger.info("Login rejected: non-string credentials")
        return GatewayResult.failure(InvalidCredentials(WRONG_CREDENTIALS_MESSAGE))

    for row in grid[1:]:
        row = row or []
        if _trimmed(row, login_col) == login_name and _trimmed(row, password_col) == password:
            logger.info("Login validated")
            return GatewayResult.success(None)

    logger.info("Login rejected: no matching row")
    return GatewayResult.failure(InvalidCredentials(WRONG_CREDENTIALS_MESSAGE))
