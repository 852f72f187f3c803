"""Request body for the Messages API.

``build_request`` is the supported way to assemble a request: it coerces raw
option values into the validated value types and checks cross-field
constraints. The resulting body is frozen and performs no I/O.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from msgstream.errors import EmptyMessages, ModelMismatch
from msgstream.schemas.messages import Message
from msgstream.schemas.models import ClaudeModel
from msgstream.schemas.values import (
    MaxTokens,
    StopSequence,
    SystemPrompt,
    Temperature,
    TopK,
    TopP,
)


class Metadata(BaseModel):
    """Request metadata forwarded to the API."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None = Field(
        default=None, description="Opaque identifier of the end user"
    )


class RequestOptions(BaseModel):
    """Optional request fields.

    Sampling values may be given as plain numbers; ``build_request``
    validates them into their value types.
    """

    system: SystemPrompt | str | None = None
    stream: bool = False
    temperature: Temperature | float | None = None
    top_p: TopP | float | None = None
    top_k: TopK | int | None = None
    stop_sequences: list[StopSequence | str] | None = None
    metadata: Metadata | None = None


class MessagesRequestBody(BaseModel):
    """A fully validated request."""

    model_config = ConfigDict(frozen=True)

    model: ClaudeModel
    messages: tuple[Message, ...]
    max_tokens: MaxTokens
    system: SystemPrompt | None = None
    stream: bool = False
    temperature: Temperature | None = None
    top_p: TopP | None = None
    top_k: TopK | None = None
    stop_sequences: tuple[StopSequence, ...] | None = None
    metadata: Metadata | None = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict for the wire, omitting unset optional fields."""
        payload: dict[str, Any] = {
            "model": self.model.value,
            "messages": [m.to_payload() for m in self.messages],
            "max_tokens": self.max_tokens.value,
        }
        if self.system is not None:
            payload["system"] = self.system.value
        if self.stream:
            payload["stream"] = True
        if self.temperature is not None:
            payload["temperature"] = self.temperature.value
        if self.top_p is not None:
            payload["top_p"] = self.top_p.value
        if self.top_k is not None:
            payload["top_k"] = self.top_k.value
        if self.stop_sequences is not None:
            payload["stop_sequences"] = [s.value for s in self.stop_sequences]
        if self.metadata is not None and self.metadata.user_id is not None:
            payload["metadata"] = {"user_id": self.metadata.user_id}
        return payload

    def with_stream(self, stream: bool) -> MessagesRequestBody:
        """Copy of this request with the streaming flag replaced."""
        return self.model_copy(update={"stream": stream})


def build_request(
    model: ClaudeModel,
    messages: Sequence[Message],
    max_tokens: MaxTokens,
    options: RequestOptions | None = None,
) -> MessagesRequestBody:
    """Assemble a validated request body.

    Args:
        model: Target model.
        messages: Conversation so far, oldest first.
        max_tokens: Budget validated for the same ``model``.
        options: Optional fields (system prompt, streaming, sampling).

    Returns:
        A frozen MessagesRequestBody.

    Raises:
        EmptyMessages: If ``messages`` is empty.
        ModelMismatch: If ``max_tokens`` was validated for another model.
        OutOfRange: If a sampling option is outside its range.
    """
    model = ClaudeModel(model)
    opts = options or RequestOptions()

    if not messages:
        raise EmptyMessages()
    if max_tokens.model != model:
        raise ModelMismatch(max_tokens.model.value, model.value)

    return MessagesRequestBody(
        model=model,
        messages=tuple(messages),
        max_tokens=max_tokens,
        system=_coerce(opts.system, SystemPrompt),
        stream=opts.stream,
        temperature=_coerce(opts.temperature, Temperature),
        top_p=_coerce(opts.top_p, TopP),
        top_k=_coerce(opts.top_k, TopK),
        stop_sequences=(
            tuple(_coerce(s, StopSequence) for s in opts.stop_sequences)
            if opts.stop_sequences is not None
            else None
        ),
        metadata=opts.metadata,
    )


def _coerce(value: Any, value_type: type[Any]) -> Any:
    """Wrap a raw value with ``value_type.new`` unless already wrapped."""
    if value is None or isinstance(value, value_type):
        return value
    return value_type.new(value)
