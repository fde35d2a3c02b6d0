# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Transport protocol and the default httpx implementation.

The scheduler only needs one operation from the transport: issue a GET and
report status, headers and body. It never inspects transport exceptions; an
implementation reports a failure without a response as a TransportResponse
whose status_code is None.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from .types.outcome import TransportResponse

logger = logging.getLogger(__name__)

DEFAULT_AUTH_HEADER = "X-Riot-Token"


@runtime_checkable
class Transport(Protocol):
    """Minimal protocol for the HTTP transport."""

    async def send(
        self, url: str, params: Mapping[str, Any], token: str
    ) -> TransportResponse:
        """Issue a GET request and return its outcome."""
        ...


class HttpxTransport:
    """
    Transport built on ``httpx.AsyncClient``.

    Query parameters holding lists are sent as repeated keys
    (``?champion=1&champion=2``).
    """

    def __init__(
        self,
        timeout: float = 10.0,
        auth_header: str = DEFAULT_AUTH_HEADER,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            timeout: Request timeout in seconds
            auth_header: Header carrying the API token
            client: Optional pre-configured client; closed by its owner
        """
        self.timeout = timeout
        self.auth_header = auth_header
        self._client = client
        self._owned_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(
        self, url: str, params: Mapping[str, Any], token: str
    ) -> TransportResponse:
        client = self._get_client()
        headers = {self.auth_header: token} if token else {}
        try:
            response = await client.get(url, params=dict(params), headers=headers)
        except httpx.HTTPError as e:
            logger.debug(f"Transport error for {url}: {e!r}")
            return TransportResponse(status_code=None, message=str(e) or repr(e))

        if response.is_success:
            return TransportResponse(
                status_code=response.status_code,
                headers=response.headers,
                body=self._decode(response),
            )
        return TransportResponse(
            status_code=response.status_code,
            headers=response.headers,
            message=f"{response.status_code} - {response.text or response.reason_phrase}",
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owned_client:
            await self._client.aclose()
            self._client = None


__all__ = ["DEFAULT_AUTH_HEADER", "HttpxTransport", "Transport"]
