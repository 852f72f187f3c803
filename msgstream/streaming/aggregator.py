"""Fold a decoded chunk sequence back into a complete message."""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterable

from pydantic import BaseModel, Field

from msgstream.errors import (
    DecodeError,
    IncompleteStream,
    PropagatedDecodeError,
    TransportError,
)
from msgstream.schemas.messages import Role, TextContentBlock
from msgstream.schemas.response import MessagesResponseBody, StopReason, Usage
from msgstream.schemas.streaming import (
    ContentBlockDeltaChunk,
    ContentBlockStartChunk,
    MessageDeltaChunk,
    MessageStartChunk,
    MessageStopChunk,
    StreamItem,
)


class CompletedMessage(BaseModel):
    """A message reconstructed from its stream."""

    id: str = Field(description="Message id from message_start")
    model: str = Field(description="Model that produced the message")
    role: Role = Role.ASSISTANT
    content: list[TextContentBlock] = Field(
        default_factory=list, description="Blocks ordered by stream index"
    )
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content)

    def to_response(self) -> MessagesResponseBody:
        """The same message in the shape of a non-streamed response."""
        return MessagesResponseBody(**self.model_dump())


class StreamAccumulator:
    """Incremental fold; feed items with ``add`` and call ``finish`` at the end.

    Useful when a caller renders chunks live and wants the complete message
    afterwards without buffering the stream.
    """

    def __init__(self) -> None:
        self._start: MessageStartChunk | None = None
        self._blocks: dict[int, list[str]] = {}
        self._stop_reason: StopReason | None = None
        self._stop_sequence: str | None = None
        self._output_tokens: int | None = None
        self._stopped = False

    def add(self, item: StreamItem) -> None:
        """Fold one item.

        Raises:
            PropagatedDecodeError: If ``item`` is an error.
        """
        if isinstance(item, (DecodeError, TransportError)):
            raise PropagatedDecodeError(item) from item

        if isinstance(item, MessageStartChunk):
            self._start = item
        elif isinstance(item, ContentBlockStartChunk):
            self._blocks[item.index] = [item.content_block.text]
        elif isinstance(item, ContentBlockDeltaChunk):
            self._blocks.setdefault(item.index, []).append(item.delta.text)
        elif isinstance(item, MessageDeltaChunk):
            if item.delta.stop_reason is not None:
                self._stop_reason = item.delta.stop_reason
            if item.delta.stop_sequence is not None:
                self._stop_sequence = item.delta.stop_sequence
            if item.usage is not None:
                self._output_tokens = item.usage.output_tokens
        elif isinstance(item, MessageStopChunk):
            self._stopped = True
        # ping, content_block_stop and unknown chunks carry no content

    def finish(self) -> CompletedMessage:
        """Build the message.

        Raises:
            IncompleteStream: If no message_stop was folded.
        """
        if self._start is None or not self._stopped:
            raise IncompleteStream("stream ended before message_stop")

        start = self._start.message
        usage = start.usage
        if self._output_tokens is not None:
            usage = Usage(
                input_tokens=usage.input_tokens,
                output_tokens=self._output_tokens,
            )

        return CompletedMessage(
            id=start.id,
            model=start.model,
            role=start.role,
            content=[
                TextContentBlock(text="".join(self._blocks[index]))
                for index in sorted(self._blocks)
            ],
            stop_reason=self._stop_reason or start.stop_reason,
            stop_sequence=self._stop_sequence or start.stop_sequence,
            usage=usage,
        )


def fold(items: Iterable[StreamItem]) -> CompletedMessage:
    """Fold a decoded sequence into a CompletedMessage.

    Raises:
        PropagatedDecodeError: On the first error item.
        IncompleteStream: If the sequence ends without message_stop.
    """
    acc = StreamAccumulator()
    for item in items:
        acc.add(item)
    return acc.finish()


async def afold(items: AsyncIterable[StreamItem]) -> CompletedMessage:
    """Async counterpart of :func:`fold`."""
    acc = StreamAccumulator()
    async for item in items:
        acc.add(item)
    return acc.finish()
