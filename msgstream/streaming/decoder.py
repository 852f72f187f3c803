"""Chunk decoder: the streaming protocol state machine.

Maps each RawFrame to one typed chunk or one DecodeError, tracking which
content blocks are open. A decoder owns the state of exactly one stream.

States::

    AWAITING_START --message_start--> STREAMING --message_stop/error--> TERMINATED

Policy for a bad leading frame: a non-``message_start`` frame before the
stream has started is reported as UnexpectedChunk and the decoder keeps
waiting for ``message_start`` (lenient recovery). ``error`` events terminate
the stream in any non-terminal state, and unknown event labels are passed
through as UnknownChunk in any non-terminal state.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import ValidationError

from msgstream.errors import (
    ChunkAfterTerminal,
    DecodeError,
    MalformedPayload,
    StreamErrorEvent,
    TransportError,
    UnclosedBlock,
    UnexpectedChunk,
)
from msgstream.schemas.response import StopReason
from msgstream.schemas.streaming import (
    CHUNK_MODELS,
    ChunkType,
    ContentBlockDeltaChunk,
    ContentBlockStartChunk,
    ContentBlockStopChunk,
    ErrorChunk,
    MessageDeltaChunk,
    MessageStartChunk,
    MessageStopChunk,
    PingChunk,
    StreamChunk,
    StreamItem,
    UnknownChunk,
)
from msgstream.streaming.frames import RawFrame

logger = logging.getLogger(__name__)

# A malformed payload for these labels leaves the stream unrecoverable
_CRITICAL = frozenset({ChunkType.MESSAGE_START, ChunkType.MESSAGE_STOP, ChunkType.ERROR})

# A server error can arrive before the stream has started
_ALLOWED_BEFORE_START = frozenset({ChunkType.MESSAGE_START, ChunkType.ERROR})


class DecoderState(StrEnum):
    """Lifecycle phase of a decoded stream."""

    AWAITING_START = "awaiting_start"
    STREAMING = "streaming"
    TERMINATED = "terminated"


@dataclass
class DecodeState:
    """Mutable per-stream record owned by one ChunkDecoder."""

    phase: DecoderState = DecoderState.AWAITING_START
    open_indices: set[int] = field(default_factory=set)
    closed_indices: set[int] = field(default_factory=set)
    highest_index: int = -1
    stop_reason: StopReason | None = None
    output_tokens: int = 0

    @property
    def started(self) -> bool:
        """Whether message_start has been observed."""
        return self.phase is not DecoderState.AWAITING_START

    @property
    def terminated(self) -> bool:
        """Whether a terminal chunk has been observed."""
        return self.phase is DecoderState.TERMINATED


class ChunkDecoder:
    """Decodes the frames of a single stream, in order.

    ``decode`` never raises for protocol problems: every violation comes
    back as a DecodeError value for that position.
    """

    def __init__(self) -> None:
        self._state = DecodeState()

    @property
    def state(self) -> DecodeState:
        return self._state

    @property
    def terminated(self) -> bool:
        return self._state.terminated

    def decode(self, frame: RawFrame) -> StreamChunk | DecodeError:
        """Decode one frame and advance the state machine."""
        result = self._decode(frame)
        if isinstance(result, DecodeError):
            logger.warning("Stream decode error (%s): %s", self._state.phase.value, result)
        elif isinstance(result, UnknownChunk):
            logger.warning("Unknown stream event %r passed through", result.event)
        else:
            logger.debug("Chunk: %s", result.type)
        return result

    def _decode(self, frame: RawFrame) -> StreamChunk | DecodeError:
        state = self._state
        if state.terminated:
            return ChunkAfterTerminal(frame.event)

        try:
            chunk_type = ChunkType(frame.event)
        except ValueError:
            return UnknownChunk(event=frame.event, data=frame.data)

        if not state.started and chunk_type not in _ALLOWED_BEFORE_START:
            return UnexpectedChunk(frame.event, "stream has not started")

        try:
            chunk = CHUNK_MODELS[chunk_type].model_validate_json(frame.data or "{}")
        except ValidationError:
            if chunk_type in _CRITICAL:
                state.phase = DecoderState.TERMINATED
            return MalformedPayload(frame.event, frame.data)

        return self._transition(chunk)

    def _transition(self, chunk: StreamChunk | ErrorChunk) -> StreamChunk | DecodeError:
        state = self._state

        if isinstance(chunk, MessageStartChunk):
            if state.started:
                return UnexpectedChunk(chunk.type, "stream already started")
            state.phase = DecoderState.STREAMING
            state.output_tokens = chunk.message.usage.output_tokens
            return chunk

        if isinstance(chunk, ContentBlockStartChunk):
            if chunk.index in state.open_indices:
                return UnexpectedChunk(chunk.type, f"block {chunk.index} is already open")
            if chunk.index in state.closed_indices:
                return UnexpectedChunk(chunk.type, f"block {chunk.index} already finished")
            state.open_indices.add(chunk.index)
            state.highest_index = max(state.highest_index, chunk.index)
            return chunk

        if isinstance(chunk, ContentBlockDeltaChunk):
            if chunk.index not in state.open_indices:
                return UnexpectedChunk(chunk.type, f"block {chunk.index} is not open")
            return chunk

        if isinstance(chunk, ContentBlockStopChunk):
            if chunk.index not in state.open_indices:
                return UnexpectedChunk(chunk.type, f"block {chunk.index} is not open")
            state.open_indices.discard(chunk.index)
            state.closed_indices.add(chunk.index)
            return chunk

        if isinstance(chunk, MessageDeltaChunk):
            if chunk.delta.stop_reason is not None:
                state.stop_reason = chunk.delta.stop_reason
            if chunk.usage is not None:
                state.output_tokens = chunk.usage.output_tokens
            return chunk

        if isinstance(chunk, MessageStopChunk):
            state.phase = DecoderState.TERMINATED
            if state.open_indices:
                return UnclosedBlock(tuple(sorted(state.open_indices)))
            return chunk

        if isinstance(chunk, PingChunk):
            return chunk

        if isinstance(chunk, ErrorChunk):
            state.phase = DecoderState.TERMINATED
            return StreamErrorEvent(chunk.error.type, chunk.error.message)

        # Every ChunkType needs a branch above
        raise AssertionError(f"no transition for {type(chunk).__name__}")

    # ── Stream adapters ───────────────────────────────────────

    def decode_stream(
        self, frames: Iterable[RawFrame | TransportError]
    ) -> Iterator[StreamItem]:
        """Decode a frame sequence lazily.

        Transport errors pass through and end the sequence. Once the stream
        has terminated, one more frame is pulled: if there is one it is
        reported as ChunkAfterTerminal and nothing further is read.
        """
        for item in frames:
            if isinstance(item, TransportError):
                yield item
                return
            terminated = self.terminated
            yield self.decode(item)
            if terminated:
                return

    async def adecode_stream(
        self, frames: AsyncIterable[RawFrame | TransportError]
    ) -> AsyncIterator[StreamItem]:
        """Async counterpart of :meth:`decode_stream`."""
        async for item in frames:
            if isinstance(item, TransportError):
                yield item
                return
            terminated = self.terminated
            yield self.decode(item)
            if terminated:
                return


def decode_frames(frames: Iterable[RawFrame | TransportError]) -> Iterator[StreamItem]:
    """Decode ``frames`` with a fresh ChunkDecoder."""
    return ChunkDecoder().decode_stream(frames)


def adecode_frames(
    frames: AsyncIterable[RawFrame | TransportError],
) -> AsyncIterator[StreamItem]:
    """Async counterpart of :func:`decode_frames`."""
    return ChunkDecoder().adecode_stream(frames)
