"""Dropbox backend construction.

Credentials are configured in one of two ways:

Just provide an access token (temporary):
    builder = DropboxBuilder().root("/data").access_token("<token>")

Or provide a refresh token with the app's client ID and secret (long term),
and the access token is refreshed automatically:
    builder = (
        DropboxBuilder()
        .refresh_token("<refresh token>")
        .client_id("<app key>")
        .client_secret("<app secret>")
    )

Obtaining the refresh token (the authorization code flow) is up to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from datetime import timedelta
from types import TracebackType

from loguru import logger

from extradrop.cache import DEFAULT_REFRESH_MARGIN, TOKEN_URL, CredentialCache
from extradrop.config import Settings
from extradrop.credentials import CredentialConfig, resolve_credential
from extradrop.root import Normalizer, build_rooted_path, normalize_root
from extradrop.transport import HttpTransport, HttpxTransport


@dataclass
class DropboxCore:
    """State shared by every operation of a backend."""

    root: str
    signer: CredentialCache
    transport: HttpTransport

    def build_path(self, path: str) -> str:
        """Return the Dropbox API path for a backend-relative path."""
        return build_rooted_path(self.root, path)

    async def sign(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Add a valid bearer token to request headers."""
        return await self.signer.sign(headers)


class DropboxBackend:
    """A configured Dropbox backend."""

    def __init__(self, core: DropboxCore) -> None:
        self.core = core

    @property
    def root(self) -> str:
        return self.core.root

    async def __aenter__(self) -> DropboxBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.core.transport.close()


class DropboxBuilder:
    """Builder for DropboxBackend.

    Setters return the builder so calls can be chained.
    """

    def __init__(self) -> None:
        self._root: str | None = None
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._client_id: str | None = None
        self._client_secret: str | None = None
        self._transport: HttpTransport | None = None
        self._token_url = TOKEN_URL
        self._refresh_margin = DEFAULT_REFRESH_MARGIN
        self._http_timeout: float | None = None
        self._normalizer: Normalizer = normalize_root

    def __repr__(self) -> str:
        return f"DropboxBuilder(root={self._root!r})"

    @classmethod
    def from_map(cls, options: Mapping[str, str]) -> DropboxBuilder:
        """Create a builder from string options.

        Recognized keys: root, access_token, refresh_token, client_id,
        client_secret. Other keys are ignored.
        """
        builder = cls()
        if "root" in options:
            builder.root(options["root"])
        config = CredentialConfig.from_map(options)
        builder._access_token = config.access_token
        builder._refresh_token = config.refresh_token
        builder._client_id = config.client_id
        builder._client_secret = config.client_secret
        return builder

    @classmethod
    def from_settings(cls, settings: Settings) -> DropboxBuilder:
        """Create a builder from environment settings."""
        builder = cls.from_map(settings.to_options())
        builder.token_url(settings.token_url)
        builder.refresh_margin(timedelta(seconds=settings.refresh_margin_seconds))
        builder._http_timeout = settings.http_timeout
        return builder

    def root(self, root: str) -> DropboxBuilder:
        """Set the working directory of the backend. Defaults to "/"."""
        self._root = root
        return self

    def access_token(self, access_token: str) -> DropboxBuilder:
        """Set a temporary access token.

        Dropbox access tokens expire after a few hours; for long running
        use set a refresh token instead.
        """
        self._access_token = access_token
        return self

    def refresh_token(self, refresh_token: str) -> DropboxBuilder:
        """Set the refresh token used to obtain new access tokens."""
        self._refresh_token = refresh_token
        return self

    def client_id(self, client_id: str) -> DropboxBuilder:
        """Set the app key. Required with a refresh token."""
        self._client_id = client_id
        return self

    def client_secret(self, client_secret: str) -> DropboxBuilder:
        """Set the app secret. Required with a refresh token."""
        self._client_secret = client_secret
        return self

    def http_transport(self, transport: HttpTransport) -> DropboxBuilder:
        """Use the given transport instead of creating an HttpxTransport."""
        self._transport = transport
        return self

    def token_url(self, token_url: str) -> DropboxBuilder:
        self._token_url = token_url
        return self

    def refresh_margin(self, margin: timedelta) -> DropboxBuilder:
        """Set how long before expiry the access token gets refreshed."""
        self._refresh_margin = margin
        return self

    def normalizer(self, normalizer: Normalizer) -> DropboxBuilder:
        self._normalizer = normalizer
        return self

    def build(self) -> DropboxBackend:
        """Build the backend.

        Raises:
            ConfigError: If the credential options are invalid.
        """
        root = self._normalizer(self._root or "")

        credential = resolve_credential(
            CredentialConfig(
                access_token=self._access_token,
                refresh_token=self._refresh_token,
                client_id=self._client_id,
                client_secret=self._client_secret,
            )
        )

        transport = self._transport
        if transport is None:
            if self._http_timeout is None:
                transport = HttpxTransport()
            else:
                transport = HttpxTransport(timeout=self._http_timeout)

        signer = CredentialCache(
            credential,
            transport,
            token_url=self._token_url,
            refresh_margin=self._refresh_margin,
        )

        logger.debug(
            "Dropbox backend built",
            extra={"root": root, "refreshable": signer.is_refreshable},
        )
        return DropboxBackend(DropboxCore(root=root, signer=signer, transport=transport))
