"""Abstract transport for the Messages API.

Defines the MessagesTransport interface the client talks to. The client
never opens connections itself: it hands a JSON payload to a transport and
gets back either a complete body or an async iterator of body bytes.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from typing import Any

from msgstream.errors import ApiError


class MessagesTransport(ABC):
    """Interface between the client and the network.

    Implementations raise ApiError for non-2xx statuses, TransportTimeout
    for timeouts and TransportError for any other I/O failure.
    """

    @abstractmethod
    async def send(
        self, url: str, payload: dict[str, Any], headers: dict[str, str]
    ) -> bytes:
        """POST ``payload`` and return the complete response body."""

    @abstractmethod
    def stream(
        self, url: str, payload: dict[str, Any], headers: dict[str, str]
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        """POST ``payload`` and expose the response body as it arrives.

        The returned context manager holds the connection; leaving it, by
        any path, must release the connection. Errors while reading the body
        are raised from the iterator as TransportError.
        """

    async def aclose(self) -> None:
        """Release pooled resources. Default implementation does nothing."""


def parse_api_error(status_code: int, body: bytes | str) -> ApiError:
    """Build an ApiError from an error response body.

    Understands the ``{"type": "error", "error": {...}}`` envelope and falls
    back to the raw text for anything else.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        data = json.loads(text)
        error = data["error"]
        return ApiError(status_code, str(error["type"]), str(error["message"]))
    except (ValueError, KeyError, TypeError):
        return ApiError(status_code, "http_error", text.strip()[:500] or "(empty body)")
