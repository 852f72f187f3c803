"""Messages API client facade.

Sends validated requests through a MessagesTransport. One-shot calls return
a parsed MessagesResponseBody; streaming calls return a lazy sequence of
decoded chunks and per-position errors. Only the initial request is
retried; a stream that has started delivering bytes never is.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, aclosing
from typing import TypeVar

from pydantic import ValidationError

from msgstream.client.base import MessagesTransport
from msgstream.client.http_transport import HttpxTransport
from msgstream.errors import (
    ApiError,
    ResponseParseError,
    TransportError,
    TransportTimeout,
)
from msgstream.keys import get_api_key
from msgstream.registry import load_client_config
from msgstream.schemas.config import ClientConfig
from msgstream.schemas.request import MessagesRequestBody
from msgstream.schemas.response import MessagesResponseBody
from msgstream.schemas.streaming import StreamItem
from msgstream.streaming.decoder import ChunkDecoder
from msgstream.streaming.frames import aiter_frames

logger = logging.getLogger(__name__)

_BASE_BACKOFF = 1.0  # seconds

T = TypeVar("T")


def _short_error_reason(error: Exception) -> str:
    """Short, user-friendly reason for a transport failure."""
    if isinstance(error, TransportTimeout):
        return "timeout"
    if isinstance(error, ApiError):
        if error.status_code == 429:
            return "rate limit"
        if error.status_code == 529 or error.kind == "overloaded_error":
            return "overloaded"
        if error.status_code == 503:
            return "service unavailable"
        if error.status_code >= 500:
            return "server error"
        return error.kind
    return "connection error"


def _is_retryable(error: TransportError) -> bool:
    if isinstance(error, ApiError):
        return error.is_retryable
    return True


class MessagesClient:
    """Async client for the Messages API.

    Each streaming call gets its own frame reader and decoder; streams
    opened from the same client share no decode state.
    """

    def __init__(
        self,
        api_key: str,
        config: ClientConfig | None = None,
        transport: MessagesTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._config = config or load_client_config()
        self._transport = transport or HttpxTransport(self._config)

    @classmethod
    def from_env(
        cls,
        config: ClientConfig | None = None,
        transport: MessagesTransport | None = None,
    ) -> MessagesClient:
        """Build a client with the key from ANTHROPIC_API_KEY or key files.

        Raises:
            MissingApiKey: If no key is configured.
        """
        return cls(get_api_key(), config=config, transport=transport)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> MessagesClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._config.api_version,
            "content-type": "application/json",
        }

    # ── One-shot ──────────────────────────────────────────────

    async def create_a_message(self, request: MessagesRequestBody) -> MessagesResponseBody:
        """Send a request and return the complete response.

        Raises:
            ValueError: If ``request`` asks for streaming.
            ApiError: On a non-retryable error status, or after all retries.
            TransportError: If the request cannot be sent after all retries.
            ResponseParseError: If the body does not match the response schema.
        """
        if request.stream:
            raise ValueError(
                "request has stream=True; use create_a_message_stream() instead"
            )

        payload = request.to_payload()
        body = await self._call_with_retry(
            lambda: self._transport.send(self._config.messages_url, payload, self._headers()),
            request.model.value,
        )

        try:
            return MessagesResponseBody.model_validate_json(body)
        except ValidationError as e:
            raise ResponseParseError(f"Unexpected response body: {body[:200]!r}") from e

    # ── Streaming ─────────────────────────────────────────────

    def create_a_message_stream(
        self, request: MessagesRequestBody
    ) -> AsyncIterator[StreamItem]:
        """Send a streaming request and decode the response lazily.

        Each item is a StreamChunk, or the DecodeError/TransportError for
        that position; errors are yielded, not raised, so chunks received
        before a failure stay usable. The connection is opened on first
        iteration and released when the sequence ends or is closed early
        (``aclose()`` or leaving an ``aclosing`` block).

        Raises:
            ValueError: Immediately, if ``request`` does not ask for streaming.
            ApiError, TransportError: From the first iteration, if the
                initial request fails after all retries.
        """
        if not request.stream:
            raise ValueError(
                "request has stream=False; use create_a_message() instead"
            )
        return self._stream(request)

    async def _stream(self, request: MessagesRequestBody) -> AsyncIterator[StreamItem]:
        payload = request.to_payload()
        async with AsyncExitStack() as stack:
            chunks = await self._call_with_retry(
                lambda: stack.enter_async_context(
                    self._transport.stream(
                        self._config.messages_url, payload, self._headers()
                    )
                ),
                request.model.value,
            )
            frames = await stack.enter_async_context(aclosing(aiter_frames(chunks)))
            items = await stack.enter_async_context(
                aclosing(ChunkDecoder().adecode_stream(frames))
            )
            async for item in items:
                yield item

    # ── Retry ─────────────────────────────────────────────────

    async def _call_with_retry(self, call: Callable[[], Awaitable[T]], model: str) -> T:
        """Run ``call`` with exponential backoff on transient failures.

        Non-retryable API errors (auth, invalid request) are raised
        immediately; the last error is raised once retries run out.
        """
        attempts = self._config.max_retries + 1

        for attempt in range(attempts):
            try:
                return await call()
            except TransportError as e:
                if not _is_retryable(e) or attempt == attempts - 1:
                    raise
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1,
                    self._config.max_retries,
                    model,
                    _short_error_reason(e),
                    backoff,
                )
                await asyncio.sleep(backoff)

        raise AssertionError("unreachable")
