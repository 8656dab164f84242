# SPDX-License-Identifier: Apache-2.0
"""HTTP transport protocol for dependency injection."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

import httpx

from crptapi.errors import TransportError


@dataclass(frozen=True)
class TransportResponse:
    """Status code and raw body of an HTTP response."""

    status_code: int
    content: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class Transport(Protocol):
    """Protocol for HTTP transport implementations.

    This protocol allows for dependency injection of transports,
    enabling tests to inject fake transports instead of using
    real HTTP libraries.
    """

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """Send a request synchronously.

        Args:
            method: HTTP method
            url: Fully built request URL, query string included
            headers: Request headers
            body: Encoded request body
            timeout: Request timeout in seconds

        Returns:
            TransportResponse: Status code and body bytes

        Raises:
            TransportError: On connection failure or timeout
        """
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Protocol for async HTTP transport implementations."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """Send a request asynchronously (same semantics as :meth:`Transport.send`)."""
        ...


def _to_transport_response(response: httpx.Response) -> TransportResponse:
    return TransportResponse(
        status_code=response.status_code,
        content=response.content,
        headers=dict(response.headers),
    )


# Adapter classes to make httpx compatible with the protocol


class HttpxTransport:
    """Adapter to make httpx.Client compatible with :class:`Transport`."""

    def __init__(self, httpx_client: Optional[httpx.Client] = None):
        self._owns_client = httpx_client is None
        self._client = httpx_client or httpx.Client()

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        try:
            response = self._client.request(
                method, url, headers=dict(headers), content=body, timeout=timeout
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}", url=url) from e
        except httpx.RequestError as e:
            raise TransportError(f"Request failed: {e}", url=url) from e
        return _to_transport_response(response)

    def close(self) -> None:
        """Close the underlying client if this adapter created it."""
        if self._owns_client:
            self._client.close()


class AsyncHttpxTransport:
    """Adapter to make httpx.AsyncClient compatible with :class:`AsyncTransport`."""

    def __init__(self, httpx_client: Optional[httpx.AsyncClient] = None):
        self._owns_client = httpx_client is None
        self._client = httpx_client or httpx.AsyncClient()

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        try:
            response = await self._client.request(
                method, url, headers=dict(headers), content=body, timeout=timeout
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}", url=url) from e
        except httpx.RequestError as e:
            raise TransportError(f"Request failed: {e}", url=url) from e
        return _to_transport_response(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# Default implementations


def get_default_transport() -> Transport:
    """Get default HTTP transport implementation."""
    return HttpxTransport()


def get_default_async_transport() -> AsyncTransport:
    """Get default async HTTP transport implementation."""
    return AsyncHttpxTransport()


__all__ = [
    "TransportResponse",
    "Transport",
    "AsyncTransport",
    "HttpxTransport",
    "AsyncHttpxTransport",
    "get_default_transport",
    "get_default_async_transport",
]
