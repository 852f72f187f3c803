"""Streaming schemas for server-sent Messages API events.

One pydantic model per recognized event label. The decoder picks the model
from the frame's event label and validates the frame's JSON data against
it; labels outside the vocabulary become :class:`UnknownChunk`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from msgstream.errors import DecodeError, TransportError
from msgstream.schemas.response import MessagesResponseBody, StopReason


class ChunkType(StrEnum):
    """Event labels of the streaming wire protocol."""

    MESSAGE_START = "message_start"
    CONTENT_BLOCK_START = "content_block_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    CONTENT_BLOCK_STOP = "content_block_stop"
    MESSAGE_DELTA = "message_delta"
    MESSAGE_STOP = "message_stop"
    PING = "ping"
    ERROR = "error"


class _Chunk(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Content block payloads ────────────────────────────────────


class TextBlockStart(_Chunk):
    """Initial state of a text block; ``text`` is usually empty."""

    type: Literal["text"] = "text"
    text: str = ""


class TextDelta(_Chunk):
    """Text to append to an open text block."""

    type: Literal["text_delta"] = "text_delta"
    text: str


# Only text blocks are streamed today; other kinds fail validation.
BlockStart = TextBlockStart
BlockDelta = TextDelta


# ── Chunk variants ────────────────────────────────────────────


class MessageStartChunk(_Chunk):
    """Opens the stream; echoes response metadata and initial usage."""

    type: Literal["message_start"] = "message_start"
    message: MessagesResponseBody


class ContentBlockStartChunk(_Chunk):
    """Opens the content block at ``index``."""

    type: Literal["content_block_start"] = "content_block_start"
    index: int = Field(ge=0)
    content_block: BlockStart


class ContentBlockDeltaChunk(_Chunk):
    """Incremental payload for the open block at ``index``."""

    type: Literal["content_block_delta"] = "content_block_delta"
    index: int = Field(ge=0)
    delta: BlockDelta


class ContentBlockStopChunk(_Chunk):
    """Closes the block at ``index``."""

    type: Literal["content_block_stop"] = "content_block_stop"
    index: int = Field(ge=0)


class MessageDeltaBody(_Chunk):
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None


class MessageDeltaUsage(_Chunk):
    """Cumulative output token count so far."""

    output_tokens: int = Field(ge=0)


class MessageDeltaChunk(_Chunk):
    """Top-level metadata update: stop reason and cumulative usage."""

    type: Literal["message_delta"] = "message_delta"
    delta: MessageDeltaBody
    usage: MessageDeltaUsage | None = None


class MessageStopChunk(_Chunk):
    """Terminal chunk of a successful stream."""

    type: Literal["message_stop"] = "message_stop"


class PingChunk(_Chunk):
    """Keep-alive; carries nothing."""

    type: Literal["ping"] = "ping"


class ErrorBody(_Chunk):
    type: str = Field(description="Error kind, e.g. 'overloaded_error'")
    message: str


class ErrorChunk(_Chunk):
    """Server-side error reported inside the stream.

    Decoders surface this as a :class:`~msgstream.errors.StreamErrorEvent`
    item rather than as a chunk.
    """

    type: Literal["error"] = "error"
    error: ErrorBody


class UnknownChunk(_Chunk):
    """A frame whose event label is outside the known vocabulary."""

    type: Literal["unknown"] = "unknown"
    event: str = Field(description="The unrecognized event label")
    data: str = Field(description="Raw, unparsed payload text")


StreamChunk = (
    MessageStartChunk
    | ContentBlockStartChunk
    | ContentBlockDeltaChunk
    | ContentBlockStopChunk
    | MessageDeltaChunk
    | MessageStopChunk
    | PingChunk
    | UnknownChunk
)

# What a decoded stream yields per item: a chunk, or the error at that position.
StreamItem = StreamChunk | DecodeError | TransportError

CHUNK_MODELS: dict[ChunkType, type[_Chunk]] = {
    ChunkType.MESSAGE_START: MessageStartChunk,
    ChunkType.CONTENT_BLOCK_START: ContentBlockStartChunk,
    ChunkType.CONTENT_BLOCK_DELTA: ContentBlockDeltaChunk,
    ChunkType.CONTENT_BLOCK_STOP: ContentBlockStopChunk,
    ChunkType.MESSAGE_DELTA: MessageDeltaChunk,
    ChunkType.MESSAGE_STOP: MessageStopChunk,
    ChunkType.PING: PingChunk,
    ChunkType.ERROR: ErrorChunk,
}
