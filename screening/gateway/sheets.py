"""Spreadsheet values client and the authenticated gateway facade."""
from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from ..config import GoogleSettings
from .assertion import sign_assertion
from .errors import GatewayError, GatewayResult, SheetFetchError
from .service_account import ServiceIdentity, load_service_identity
from .tokens import AccessToken, TokenCache, exchange_assertion

logger = logging.getLogger(__name__)

RawGrid = list[list[str]]

DEFAULT_SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"


def _coerce_grid(values: object) -> RawGrid:
    if not isinstance(values, list):
        return []
    grid: RawGrid = []
    for row in values:
        if not isinstance(row, list):
            grid.append([])
            continue
        grid.append(["" if cell is None else str(cell) for cell in row])
    return grid


async def fetch_values(
    client: httpx.AsyncClient,
    token: str,
    spreadsheet_id: str,
    range_name: str,
    base_url: str = DEFAULT_SHEETS_API_BASE,
) -> RawGrid:
    """Read a rectangular range of cell values.

    Args:
        client: Shared async HTTP client
        token: Bearer access token
        spreadsheet_id: Spreadsheet identifier
        range_name: A1 range or tab name, e.g. "DashboardData"
        base_url: Values API base URL

    Returns:
        RawGrid: row 0 is the header row. Absent ``values`` yields []

    Raises:
        SheetFetchError: On transport failure or a non-2xx status
    """
    url = f"{base_url.rstrip('/')}/{quote(spreadsheet_id, safe='')}/values/{quote(range_name, safe='')}"
    try:
        resp = await client.get(url, headers={"Authorization": f"Bearer {token}"})
    except httpx.HTTPError as e:
        logger.error(f"Sheets API request failed: {e.__class__.__name__}")
        raise SheetFetchError(f"Sheets API request failed: {e}") from e

    if not resp.is_success:
        logger.error(f"Sheets API error: status={resp.status_code} body={resp.text[:200]}")
        raise SheetFetchError("Sheets API error", status_code=resp.status_code)

    try:
        payload = resp.json()
    except ValueError as e:
        raise SheetFetchError("Sheets API returned a non-JSON body", status_code=resp.status_code) from e

    values = payload.get("values") if isinstance(payload, dict) else None
    return _coerce_grid(values)


class SheetsGateway:
    """Authenticated read access to spreadsheet ranges.

    Loads the service identity, obtains a bearer token (through the cache
    when one is given) and reads the requested range. The token exchange and
    the fetch are strictly sequential.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: GoogleSettings,
        token_cache: TokenCache | None = None,
    ):
        self.client = client
        self.config = config
        self.token_cache = token_cache

    async def _mint(self, identity: ServiceIdentity) -> AccessToken:
        assertion = sign_assertion(identity, self.config.scope)
        return await exchange_assertion(self.client, assertion, identity.token_uri)

    async def access_token(self, identity: ServiceIdentity) -> AccessToken:
        if self.token_cache is None:
            return await self._mint(identity)
        return await self.token_cache.get(
            identity.client_email,
            self.config.scope,
            lambda: self._mint(identity),
        )

    async def read_range(self, spreadsheet_id: str, range_name: str) -> GatewayResult[RawGrid]:
        """Fetch a range, reporting any gateway failure as a tagged result."""
        try:
            identity = load_service_identity(self.config.service_account_key_base64)
            token = await self.access_token(identity)
            try:
                grid = await fetch_values(
                    self.client,
                    token.value,
                    spreadsheet_id,
                    range_name,
                    base_url=self.config.sheets_api_base,
                )
            except SheetFetchError as e:
                if e.status_code == 401 and self.token_cache is not None:
                    # Cached token was revoked upstream; next request mints anew
                    self.token_cache.invalidate(identity.client_email, self.config.scope)
                raise
        except GatewayError as e:
            logger.error(f"Reading {range_name} failed: {e.kind.value}: {e}")
            return GatewayResult.failure(e)

        logger.info(f"Read {len(grid)} rows from {range_name}")
        return GatewayResult.success(grid)
