"""Custom exceptions for ExtraDrop."""

from __future__ import annotations

SERVICE = "dropbox"


class ExtraDropError(Exception):
    """Base exception for all ExtraDrop errors."""

    pass


class ConfigError(ExtraDropError):
    """Raised when the backend configuration is invalid.

    The message is stable and meant to be shown to the user as-is.
    """

    def __init__(self, message: str, service: str = SERVICE) -> None:
        self.service = service
        super().__init__(message)


class ConflictingCredentialsError(ConfigError):
    """Raised when mutually exclusive credential options are both set."""

    pass


class MissingCredentialError(ConfigError):
    """Raised when a required credential option is missing."""

    pass


class TransportError(ExtraDropError):
    """Raised when an HTTP request could not be completed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class TokenEndpointError(ExtraDropError):
    """Raised when the token endpoint answers with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Token endpoint returned {status_code}: {body}")


class MalformedTokenResponseError(ExtraDropError):
    """Raised when the token endpoint response can't be parsed."""

    pass


class AuthError(ExtraDropError):
    """Base exception for authentication failures."""

    pass


class RefreshFailedError(AuthError):
    """Raised when exchanging the refresh token for an access token fails."""

    def __init__(self, message: str, cause: Exception) -> None:
        self.cause = cause
        super().__init__(message)
