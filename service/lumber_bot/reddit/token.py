"""
Reddit access token keeper.

Script apps authenticate with the password grant. Tokens nominally expire
after an hour, so a background task refreshes them every 45 minutes.

STALE TOKEN POLICY:
===================
A failed refresh is logged and the previous credential stays in use until
the next successful refresh. There is no maximum staleness: a revoked
credential keeps being sent until a refresh succeeds.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from lumber_bot.errors import AuthError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
REFRESH_INTERVAL_SECONDS = 45 * 60


@dataclass(frozen=True)
class Credential:
    access_token: str
    token_type: str
    expires_in: int
    scope: str = ""

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"{self.token_type} {self.access_token}"


class TokenKeeper:
    """
    Owns the single Reddit credential.

    Readers call `credential` for the current snapshot; the refresher swaps
    in a new frozen Credential in one assignment, so a reader never sees a
    half-updated token.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        username: str,
        password: str,
        client_id: str,
        client_secret: str,
        user_agent: str,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        token_url: str = ACCESS_TOKEN_URL,
    ):
        self.client = client
        self.username = username
        self.password = password
        self.client_id = client_id
        self.client_secret = client_secret
        self.user_agent = user_agent
        self.refresh_interval = refresh_interval
        self.token_url = token_url

        self._credential: Optional[Credential] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def credential(self) -> Credential:
        if self._credential is None:
            raise AuthError("No reddit access token yet, call start() first")
        return self._credential

    async def refresh(self) -> Credential:
        """
        Exchange username/password for a fresh access token.

        Returns:
            The new credential (already swapped in)

        Raises:
            AuthError: transport failure, non-2xx status or error payload
        """
        try:
            response = await self.client.post(
                self.token_url,
                data={
                    "grant_type": "password",
                    "username": self.username,
                    "password": self.password,
                },
                auth=(self.client_id, self.client_secret),
                headers={"User-Agent": self.user_agent},
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Token request failed: {e}") from e

        if response.is_error:
            raise AuthError(f"Token request returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(f"Could not decode token response: {e}") from e

        if not isinstance(payload, dict) or "access_token" not in payload:
            error = payload.get("error", "unknown error") if isinstance(payload, dict) else payload
            raise AuthError(f"Token request rejected: {error}")

        try:
            credential = Credential(
                access_token=str(payload["access_token"]),
                token_type=str(payload.get("token_type") or "bearer"),
                expires_in=int(payload.get("expires_in") or 0),
                scope=str(payload.get("scope") or ""),
            )
        except (TypeError, ValueError) as e:
            raise AuthError(f"Malformed token response: {e}") from e
        self._credential = credential
        return credential

    async def start(self) -> None:
        """
        Acquire the first token and start the background refresher.

        Raises:
            AuthError: first exchange failed (no token, no bot)
        """
        await self.refresh()
        logger.info("Acquired reddit access token")
        self._task = asyncio.create_task(self._refresh_forever(), name="reddit-token-refresh")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _refresh_forever(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_interval)
            await self.refresh_once()

    async def refresh_once(self) -> bool:
        """One refresh cycle. Failures are logged, the old token stays."""
        try:
            await self.refresh()
        except AuthError as e:
            logger.error(f"Could not refresh reddit token: {e}")
            return False
        except Exception:
            # The refresher task must outlive any single bad cycle
            logger.error("Unexpected error refreshing reddit token", exc_info=True)
            return False
        logger.info("Successfully refreshed reddit access token")
        return True
