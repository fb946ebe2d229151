"""ExtraDrop: Dropbox backend credentials with automatic token refresh."""

from loguru import logger

from extradrop.backend import DropboxBackend, DropboxBuilder, DropboxCore
from extradrop.cache import TOKEN_URL, CredentialCache, TokenResponse
from extradrop.credentials import (
    Credential,
    CredentialConfig,
    FixedCredential,
    RefreshableCredential,
    resolve_credential,
)
from extradrop.exceptions import (
    AuthError,
    ConfigError,
    ConflictingCredentialsError,
    ExtraDropError,
    MalformedTokenResponseError,
    MissingCredentialError,
    RefreshFailedError,
    TokenEndpointError,
    TransportError,
)
from extradrop.root import build_rooted_path, normalize_root
from extradrop.transport import HttpResponse, HttpTransport, HttpxTransport

# Silent until the application opts in via configure_logging()
logger.disable("extradrop")

__all__ = [
    # Backend
    "DropboxBuilder",
    "DropboxBackend",
    "DropboxCore",
    # Credentials
    "Credential",
    "CredentialConfig",
    "FixedCredential",
    "RefreshableCredential",
    "resolve_credential",
    # Token cache
    "CredentialCache",
    "TokenResponse",
    "TOKEN_URL",
    # Transport
    "HttpTransport",
    "HttpxTransport",
    "HttpResponse",
    # Root
    "normalize_root",
    "build_rooted_path",
    # Exceptions
    "ExtraDropError",
    "ConfigError",
    "ConflictingCredentialsError",
    "MissingCredentialError",
    "TransportError",
    "TokenEndpointError",
    "MalformedTokenResponseError",
    "AuthError",
    "RefreshFailedError",
]
