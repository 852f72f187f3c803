"""httpx implementation of MessagesTransport."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from msgstream.client.base import MessagesTransport, parse_api_error
from msgstream.errors import TransportError, TransportTimeout
from msgstream.schemas.config import ClientConfig

logger = logging.getLogger(__name__)


class HttpxTransport(MessagesTransport):
    """Sends requests through an ``httpx.AsyncClient``.

    The read timeout applies to every read of a streamed body, so a stalled
    stream ends with TransportTimeout instead of hanging.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        config = config or ClientConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=config.connect_timeout),
        )

    async def send(
        self, url: str, payload: dict[str, Any], headers: dict[str, str]
    ) -> bytes:
        try:
            response = await self._client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportTimeout(f"request to {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request to {url} failed: {e}") from e

        if response.is_error:
            raise parse_api_error(response.status_code, response.content)
        return response.content

    @asynccontextmanager
    async def stream(
        self, url: str, payload: dict[str, Any], headers: dict[str, str]
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        request = self._client.build_request("POST", url, json=payload, headers=headers)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise TransportTimeout(f"request to {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request to {url} failed: {e}") from e

        try:
            if response.is_error:
                body = await response.aread()
                raise parse_api_error(response.status_code, body)
            logger.debug("Stream opened: HTTP %d", response.status_code)
            yield _iter_body(response)
        finally:
            await response.aclose()
            logger.debug("Stream connection released")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


async def _iter_body(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.TimeoutException as e:
        raise TransportTimeout(f"stream read timed out: {e}") from e
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise TransportError(f"stream read failed: {e}") from e
