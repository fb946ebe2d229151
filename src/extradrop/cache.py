"""Shared access token cache with serialized refresh.

The cache owns the backend's credential for its whole lifetime. Every request
asks it for a token right before signing, and a refreshable credential is
renewed through the token endpoint when its access token is missing or about
to expire.

Key design decisions:
- One asyncio.Lock per cache covers both the freshness check and the refresh,
  so at most one refresh round-trip is ever in flight
- The refresh itself runs as a separate task; a caller cancelled while waiting
  does not abort it, and the next caller joins the round-trip while it is
  still running
- A failed refresh leaves the credential untouched so the next call retries
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

from loguru import logger

from extradrop.credentials import Credential, FixedCredential, RefreshableCredential
from extradrop.exceptions import (
    MalformedTokenResponseError,
    RefreshFailedError,
    TokenEndpointError,
    TransportError,
)
from extradrop.logging import mask_secret
from extradrop.transport import HttpResponse, HttpTransport

TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"

# Refresh this long before the access token actually expires
DEFAULT_REFRESH_MARGIN = timedelta(seconds=60)


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class TokenResponse:
    """Parsed token endpoint response."""

    access_token: str
    expires_in: int

    @classmethod
    def from_response(cls, response: HttpResponse) -> TokenResponse:
        """Parse a token endpoint response.

        Raises:
            MalformedTokenResponseError: If the body isn't a JSON object with a
                string access_token and a positive integer expires_in.
        """
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedTokenResponseError(f"Token response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedTokenResponseError("Token response is not a JSON object")

        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise MalformedTokenResponseError("Token response is missing access_token")

        expires_in = data.get("expires_in")
        if isinstance(expires_in, bool) or not isinstance(expires_in, int):
            raise MalformedTokenResponseError("Token response is missing expires_in")
        if expires_in <= 0:
            raise MalformedTokenResponseError(
                f"Token response has a non-positive expires_in: {expires_in}"
            )

        return cls(access_token=access_token, expires_in=expires_in)


class CredentialCache:
    """Holds the backend credential and hands out valid access tokens.

    Args:
        credential: The credential produced by resolve_credential().
        transport: Transport used to reach the token endpoint.
        token_url: OAuth2 token endpoint.
        refresh_margin: How long before expiry a token is considered stale.
        clock: Returns the current time as an aware UTC datetime.

    Example:
        cache = CredentialCache(resolve_credential(config), HttpxTransport())
        headers = await cache.sign({})
    """

    def __init__(
        self,
        credential: Credential,
        transport: HttpTransport,
        *,
        token_url: str = TOKEN_URL,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._credential = credential
        self._transport = transport
        self._token_url = token_url
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._lock = asyncio.Lock()
        self._pending: asyncio.Future[str] | None = None

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def is_refreshable(self) -> bool:
        return isinstance(self._credential, RefreshableCredential)

    @property
    def token_url(self) -> str:
        return self._token_url

    @property
    def refresh_margin(self) -> timedelta:
        return self._refresh_margin

    async def get_valid_token(self) -> str:
        """Get a valid access token, refreshing it if necessary.

        Returns:
            An access token usable for at least the refresh margin.

        Raises:
            RefreshFailedError: If the credential needed a refresh and it failed.
        """
        credential = self._credential
        if isinstance(credential, FixedCredential):
            return credential.access_token

        async with self._lock:
            self._drop_finished_refresh()
            if self._pending is None and credential.is_fresh(
                self._clock(), self._refresh_margin
            ):
                logger.debug(
                    "Using cached Dropbox access token",
                    extra={"expires_at": credential.expires_at},
                )
                return credential.access_token  # type: ignore[return-value]
            return await self._await_refresh(credential)

    async def refresh(self) -> str:
        """Refresh the access token now, regardless of its expiry.

        A fixed credential has nothing to refresh and returns its token.

        Raises:
            RefreshFailedError: If the refresh failed.
        """
        credential = self._credential
        if isinstance(credential, FixedCredential):
            return credential.access_token

        async with self._lock:
            self._drop_finished_refresh()
            return await self._await_refresh(credential)

    async def sign(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set the Authorization header for an outgoing request.

        Raises:
            RefreshFailedError: If a needed refresh failed.
        """
        token = await self.get_valid_token()
        headers["Authorization"] = f"Bearer {token}"
        return headers

    def _drop_finished_refresh(self) -> None:
        # Only a refresh that is still running may be joined. A finished one
        # belonged to cancelled callers and its outcome may be long stale.
        if self._pending is not None and self._pending.done():
            self._pending = None

    def _on_refresh_done(self, pending: asyncio.Future[str]) -> None:
        if self._pending is pending:
            self._pending = None
        if not pending.cancelled():
            # Mark the outcome retrieved even when every waiter was cancelled
            pending.exception()

    async def _await_refresh(self, credential: RefreshableCredential) -> str:
        # Caller must hold self._lock.
        pending = self._pending
        if pending is None:
            pending = asyncio.ensure_future(self._refresh(credential))
            pending.add_done_callback(self._on_refresh_done)
            self._pending = pending

        return await asyncio.shield(pending)

    async def _refresh(self, credential: RefreshableCredential) -> str:
        logger.info(
            "Refreshing Dropbox access token",
            extra={"client_id": credential.client_id},
        )
        body = urlencode(
            {
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token,
                "client_id": credential.client_id,
                "client_secret": credential.client_secret,
            }
        ).encode()

        try:
            response = await self._transport.send(
                "POST",
                self._token_url,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
                body=body,
            )
            if not response.is_success:
                raise TokenEndpointError(response.status_code, response.text)
            token = TokenResponse.from_response(response)
        except (TransportError, TokenEndpointError, MalformedTokenResponseError) as e:
            logger.warning(
                "Dropbox token refresh failed",
                extra={"client_id": credential.client_id, "error": str(e)},
            )
            raise RefreshFailedError(f"Failed to refresh access token: {e}", cause=e) from e

        lifetime = timedelta(seconds=token.expires_in)
        if lifetime <= self._refresh_margin:
            logger.warning(
                "Dropbox access token lifetime is within the refresh margin",
                extra={
                    "expires_in": token.expires_in,
                    "refresh_margin": self._refresh_margin.total_seconds(),
                },
            )

        credential.access_token = token.access_token
        credential.expires_at = self._clock() + lifetime

        logger.info(
            "Dropbox access token refreshed",
            extra={
                "access_token": mask_secret(token.access_token),
                "expires_at": credential.expires_at.isoformat(),
            },
        )
        return token.access_token
