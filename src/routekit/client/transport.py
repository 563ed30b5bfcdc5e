"""HTTP transport -- sends a :class:`~routekit.models.RequestDescriptor`.

:class:`Transport` is the protocol the dispatcher depends on;
:class:`HttpxTransport` is the default implementation on top of
:class:`httpx.AsyncClient`.

The transport neither retries nor interprets status codes. Network and
protocol failures surface as :class:`~routekit.exceptions.TransportError`
with the httpx exception chained as ``__cause__``.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from routekit.exceptions import TransportError
from routekit.models import ClientSettings, RequestDescriptor, ResponseDescriptor

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Anything that can send a request descriptor and await its response."""

    async def send(self, request: RequestDescriptor) -> ResponseDescriptor:
        ...


class HttpxTransport:
    """Send requests through :class:`httpx.AsyncClient`.

    Args:
        settings: Timeout, SSL verification, redirect and User-Agent
            settings. Defaults to :class:`~routekit.models.ClientSettings`.
        client: An existing client to reuse. It is never closed here; the
            caller owns its lifetime.
        transport: Optional :class:`httpx.AsyncBaseTransport` (for example
            :class:`httpx.MockTransport`) used for clients created per
            request when *client* is not given.

    Example::

        transport = HttpxTransport(ClientSettings(timeout=5))
        response = await transport.send(descriptor)
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._client = client
        self._transport = transport

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def send(self, request: RequestDescriptor) -> ResponseDescriptor:
        """Send *request* and return the raw response.

        Raises:
            TransportError: On connection, timeout, or protocol failures.
        """
        headers = dict(request.headers)
        if not any(name.lower() == "user-agent" for name in headers):
            headers["User-Agent"] = self._settings.user_agent

        logger.debug("%s %s", request.method.value.upper(), request.full_url)
        try:
            if self._client is not None:
                response = await self._send(self._client, request, headers)
            else:
                async with self._new_client() as client:
                    response = await self._send(client, request, headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(
                f"{request.method.value.upper()} {request.full_url} failed: {exc}"
            ) from exc

        logger.debug(
            "%s %s -> %d", request.method.value.upper(), request.full_url, response.status_code
        )
        return ResponseDescriptor(
            status=response.status_code,
            headers={name.lower(): value for name, value in response.headers.items()},
            body=response.text,
            text=response.text,
            url=str(response.url),
            method=request.method,
        )

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
            follow_redirects=self._settings.follow_redirects,
            transport=self._transport,
        )

    @staticmethod
    async def _send(
        client: httpx.AsyncClient, request: RequestDescriptor, headers: dict[str, str]
    ) -> httpx.Response:
        return await client.request(
            request.method.value.upper(),
            request.full_url,
            headers=headers,
            content=request.body,
        )
