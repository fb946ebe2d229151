"""Credential resolution for the Dropbox backend.

A backend authenticates in exactly one of two ways:
1. Access token - a caller-managed bearer token that never expires here
2. Refresh token - a refresh_token/client_id/client_secret triple that is
   exchanged for short-lived access tokens on demand
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from extradrop.exceptions import ConflictingCredentialsError, MissingCredentialError


@dataclass(frozen=True)
class CredentialConfig:
    """Credential options as supplied by the user.

    A field is considered set when it is not None.
    """

    access_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    client_id: str | None = None
    client_secret: str | None = field(default=None, repr=False)

    @classmethod
    def from_map(cls, options: Mapping[str, str]) -> CredentialConfig:
        """Create config from an option mapping, ignoring unknown keys."""
        return cls(
            access_token=options.get("access_token"),
            refresh_token=options.get("refresh_token"),
            client_id=options.get("client_id"),
            client_secret=options.get("client_secret"),
        )


@dataclass(frozen=True)
class FixedCredential:
    """A caller-supplied access token. Never refreshed."""

    access_token: str = field(repr=False)


@dataclass
class RefreshableCredential:
    """A refresh token triple plus the access token obtained from it.

    access_token and expires_at stay None until the first refresh succeeds.
    """

    refresh_token: str = field(repr=False)
    client_id: str
    client_secret: str = field(repr=False)
    access_token: str | None = field(default=None, repr=False)
    expires_at: datetime | None = None

    def is_fresh(self, now: datetime, margin: timedelta) -> bool:
        """Check if the cached access token is usable for at least `margin`."""
        if self.access_token is None or self.expires_at is None:
            return False
        return self.expires_at - margin > now


Credential = FixedCredential | RefreshableCredential


def resolve_credential(config: CredentialConfig) -> Credential:
    """Turn credential options into a credential.

    Args:
        config: The user-supplied credential options.

    Returns:
        FixedCredential when only access_token is set, RefreshableCredential
        when a complete refresh token triple is set.

    Raises:
        ConflictingCredentialsError: If access_token and refresh_token are both set.
        MissingCredentialError: If neither is set, or the refresh token triple
            is incomplete.
    """
    if config.access_token is not None and config.refresh_token is not None:
        raise ConflictingCredentialsError(
            "access_token and refresh_token can not be set at the same time"
        )

    if config.access_token is None and config.refresh_token is None:
        raise MissingCredentialError("access_token or refresh_token must be set")

    if config.access_token is not None:
        return FixedCredential(access_token=config.access_token)

    if config.client_id is None:
        raise MissingCredentialError("client_id must be set when refresh_token is set")

    if config.client_secret is None:
        raise MissingCredentialError("client_secret must be set when refresh_token is set")

    return RefreshableCredential(
        refresh_token=config.refresh_token,
        client_id=config.client_id,
        client_secret=config.client_secret,
    )
