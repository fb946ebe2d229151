"""Transport layer for the Dropbox backend."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import certifi
import httpx

from extradrop.exceptions import TransportError

DEFAULT_TIMEOUT = 30.0


@dataclass
class HttpResponse:
    """Status, headers and raw body of an HTTP response."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.body)


class HttpTransport(ABC):
    """Abstract HTTP transport used by the backend."""

    @abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        """Send a request and return the response.

        Non-success statuses are returned, not raised.

        Args:
            method: HTTP method, e.g. "POST".
            url: Absolute request URL.
            headers: Request headers.
            body: Raw request body.

        Returns:
            The HTTP response.

        Raises:
            TransportError: If the request could not be completed.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close transport and cleanup resources."""
        pass


class HttpxTransport(HttpTransport):
    """Production transport using httpx."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout: Request timeout in seconds. Ignored when client is given.
            client: Preconfigured httpx client to use instead of a new one.
        """
        self._client = client or httpx.AsyncClient(
            verify=certifi.where(),
            timeout=timeout,
        )

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        try:
            response = await self._client.request(
                method,
                url,
                headers=dict(headers or {}),
                content=body,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}", cause=e) from e

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
