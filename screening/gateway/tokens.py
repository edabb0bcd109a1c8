"""Access token exchange and the in-process token cache."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Awaitable, Callable

import httpx

from .assertion import SignedAssertion
from .errors import AuthExchangeError

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


@dataclass(frozen=True)
class AccessToken:
    """Opaque bearer token with the expiry of the assertion that minted it."""
    value: str
    expires_at: float

    def is_usable(self, now: float, margin: float = 0.0) -> bool:
        return now < self.expires_at - margin

    def __repr__(self) -> str:
        return f"AccessToken(value='***', expires_at={self.expires_at})"


async def exchange_assertion(
    client: httpx.AsyncClient,
    assertion: SignedAssertion,
    token_uri: str,
) -> AccessToken:
    """Exchange a signed assertion for a bearer token.

    A single attempt is made; there is no retry.

    Raises:
        AuthExchangeError: On transport failure, non-2xx status, non-JSON
            body, or a response without ``access_token``
    """
    try:
        resp = await client.post(
            token_uri,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion.token},
        )
    except httpx.HTTPError as e:
        logger.error(f"Token request failed: {e.__class__.__name__}")
        raise AuthExchangeError(f"Token request failed: {e}") from e

    if not resp.is_success:
        logger.error(f"Token request failed: status={resp.status_code} body={resp.text[:200]}")
        raise AuthExchangeError("Token exchange failed", status_code=resp.status_code)

    try:
        payload = resp.json()
    except ValueError as e:
        raise AuthExchangeError("Token response is not JSON", status_code=resp.status_code) from e

    access_token = payload.get("access_token") if isinstance(payload, dict) else None
    if not access_token:
        logger.error("Token response carried no access_token")
        raise AuthExchangeError("Token response missing access_token", status_code=resp.status_code)

    return AccessToken(value=access_token, expires_at=float(assertion.expires_at))


class TokenCache:
    """Tokens keyed by (client email, scope), refreshed just before expiry.

    Access is serialized by a single lock, so concurrent requests for an
    expired entry mint one token between them.
    """

    def __init__(
        self,
        refresh_margin: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._tokens: dict[tuple[str, str], AccessToken] = {}
        self._lock = asyncio.Lock()

    async def get(
        self,
        client_email: str,
        scope: str,
        mint: Callable[[], Awaitable[AccessToken]],
    ) -> AccessToken:
        """Return a usable cached token or mint and store a fresh one."""
        key = (client_email, scope)
        async with self._lock:
            cached = self._tokens.get(key)
            if cached is not None and cached.is_usable(self._clock(), self.refresh_margin):
                logger.debug(f"Reusing cached token for {client_email}")
                return cached

            token = await mint()
            self._tokens[key] = token
            logger.info(f"Minted access token for {client_email}, expires_at={token.expires_at:.0f}")
            return token

    def invalidate(self, client_email: str, scope: str) -> None:
        self._tokens.pop((client_email, scope), None)

    def clear(self) -> None:
        self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)


@lru_cache(maxsize=1)
def get_token_cache() -> TokenCache:
    """Process-wide token cache, created on first use."""
    from ..config import settings

    return TokenCache(refresh_margin=settings.google.token_refresh_margin)
