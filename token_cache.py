"""
M2M access token cache for the Auth0 Management API.

Performs the client-credentials exchange against /oauth/token and keeps
the resulting bearer token in memory until it is within five minutes of
expiry.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import aiohttp

from errors import AuthenticationError

logger = logging.getLogger(__name__)

SAFETY_MARGIN_SECONDS = 300


@dataclass(frozen=True)
class Credential:
    """A bearer token and the epoch instant it expires at."""
    access_token: str
    expires_at: float


class TokenCache:
    """Supplies a currently-valid M2M token, refreshing it when stale.

    Concurrent callers that find the token stale share a single
    acquisition: the check and the exchange run under one lock, and the
    check is repeated once the lock is held.

    Usage::

        cache = TokenCache("tenant.auth0.com", client_id, client_secret,
                           "https://tenant.auth0.com/api/v2/")
        token = await cache.get_token(session)
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: str,
        clock: Callable[[], float] = time.time,
    ):
        self._token_url = f"https://{domain}/oauth/token"
        self._client_id = client_id
        self._client_secret = client_secret
        self._audience = audience
        self._clock = clock
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def is_valid(self) -> bool:
        """True when a token is cached and not inside the safety margin."""
        cred = self._credential
        return cred is not None and self._clock() < cred.expires_at - SAFETY_MARGIN_SECONDS

    def invalidate(self) -> None:
        """Drop the cached token so the next call reacquires."""
        self._credential = None

    async def get_token(self, session: aiohttp.ClientSession) -> str:
        """Return a valid access token, acquiring a new one if needed.

        Raises:
            AuthenticationError: The token endpoint returned a non-success status
        """
        if self.is_valid():
            return self._credential.access_token

        async with self._lock:
            # Another task may have refreshed while we waited on the lock
            if self.is_valid():
                return self._credential.access_token
            self._credential = await self._acquire(session)
            return self._credential.access_token

    async def _acquire(self, session: aiohttp.ClientSession) -> Credential:
        payload = {
            'grant_type': 'client_credentials',
            'client_id': self._client_id,
            'client_secret': self._client_secret,
            'audience': self._audience,
        }
        logger.info(f"Requesting M2M token for audience {self._audience}")

        async with session.post(
            self._token_url,
            json=payload,
            headers={'Content-Type': 'application/json'},
        ) as response:
            if not 200 <= response.status < 300:
                body = await response.text()
                logger.error(f"Token request failed: HTTP {response.status}")
                raise AuthenticationError(response.status, body)
            data = await response.json(content_type=None)

        expires_at = self._clock() + data['expires_in']
        logger.info(f"Token acquired, expires at {datetime.fromtimestamp(expires_at)}")
        return Credential(access_token=data['access_token'], expires_at=expires_at)
