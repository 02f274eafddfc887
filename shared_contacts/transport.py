"""
httpx-based transport

Implements Transport on top of an httpx.AsyncClient. Google credentials are
applied to each request with credentials.before_request, which refreshes an
expired access token before attaching it.
"""

import asyncio
import logging
from typing import Dict, Optional

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request

from .config import DEFAULT_TIMEOUT
from .errors import CredentialsError, TransportError
from .interface import HttpResponse, Transport

logger = logging.getLogger(__name__)


class HttpxTransport(Transport):
    """
    Transport over an httpx.AsyncClient.

    The exchange runs on the event loop, so cancelling the awaiting task
    closes the connection and the request is abandoned mid-flight. Token
    refresh, when one is due, goes through google-auth's requests adapter in
    a worker thread before the exchange starts.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials=None,
        timeout: Optional[float] = DEFAULT_TIMEOUT
    ):
        self._client = client
        self._credentials = credentials
        self._auth_request = Request()
        self.timeout = timeout

    @classmethod
    def from_credentials(cls, credentials, timeout: Optional[float] = DEFAULT_TIMEOUT) -> "HttpxTransport":
        """Build a transport with its own client around google-auth credentials."""
        return cls(httpx.AsyncClient(timeout=timeout), credentials, timeout=timeout)

    async def _authorize(self, method: str, url: str, headers: Dict[str, str]) -> None:
        if self._credentials is None:
            return
        if self._credentials.valid:
            self._credentials.apply(headers)
            return
        try:
            await asyncio.to_thread(self._credentials.before_request, self._auth_request, method, url, headers)
        except GoogleAuthError as e:
            raise CredentialsError(f"Failed to refresh access token: {e}") from e
        logger.debug("Refreshed access token")

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None
    ) -> HttpResponse:
        headers = dict(headers or {})
        await self._authorize(method, url, headers)

        try:
            res = await self._client.request(method, url, headers=headers, content=body, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        return HttpResponse(
            status=res.status_code,
            headers=res.headers,
            body=res.content,
            reason=res.reason_phrase or "",
        )

    async def close(self) -> None:
        await self._client.aclose()
        logger.debug("Closed HTTP client")
