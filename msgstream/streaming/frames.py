"""Server-sent event frame reader.

Turns a byte stream, delivered in arbitrary pieces, into ``RawFrame``
pairs of (event label, data text). Frames are separated by a blank line;
``event:`` sets the label and each ``data:`` line appends to the payload.
The reader knows nothing about payload semantics: labels are passed
through untouched for the decoder to interpret.
"""

from __future__ import annotations

import codecs
import logging
import re
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass

from msgstream.errors import InvalidEncoding, TransportError, TransportTimeout

logger = logging.getLogger(__name__)

# Label used when a frame carries data but no event: line
DEFAULT_EVENT = "message"

_LINE_END = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RawFrame:
    """One event extracted from the wire, before decoding."""

    event: str
    data: str


class EventFrameReader:
    """Incremental push parser for one event stream.

    Feed it bytes as they arrive; it returns every frame completed by that
    read. Partial lines, partial UTF-8 sequences and a ``\\r\\n`` split
    across reads are carried over to the next ``feed``. A reader holds the
    state of a single stream and cannot be reused.

    Bytes that are not valid UTF-8 close the reader: ``feed`` returns the
    frames completed before them followed by an InvalidEncoding item.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
        self._buffer = ""
        self._event: str | None = None
        self._data: list[str] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, data: bytes | str) -> list[RawFrame | TransportError]:
        """Consume one read and return the frames it completed."""
        if self._closed:
            raise RuntimeError("EventFrameReader is closed")
        if isinstance(data, str):
            return self._append(data)
        try:
            text = self._decoder.decode(data)
        except UnicodeDecodeError as e:
            return self._reject(e)
        return self._append(text)

    def close(self) -> list[RawFrame]:
        """Signal end of stream.

        Returns any frames completed by bytes still held in the decoder. A
        trailing frame that never saw its blank line is discarded.
        """
        if self._closed:
            return []
        try:
            tail = self._decoder.decode(b"", final=True)
        except UnicodeDecodeError:
            logger.warning("Event stream ended inside a UTF-8 sequence")
            tail = ""
        frames = self._append(tail, final=True)
        self._closed = True
        if self._buffer or self._event is not None or self._data:
            logger.debug(
                "Discarding incomplete trailing frame (event=%r, %d data lines)",
                self._event, len(self._data),
            )
        self._buffer = ""
        self._event = None
        self._data = []
        return frames

    def _reject(self, error: UnicodeDecodeError) -> list[RawFrame | TransportError]:
        # error.object is the decoder's pending bytes plus this read
        frames: list[RawFrame | TransportError] = list(
            self._append(error.object[:error.start].decode("utf-8"))
        )
        self._closed = True
        logger.warning("Invalid UTF-8 in event stream: %s", error.reason)
        frames.append(
            InvalidEncoding(f"response body is not valid UTF-8: {error.reason}")
        )
        return frames

    def _append(self, text: str, final: bool = False) -> list[RawFrame]:
        # Only the new text can hold a line end; a held-back \r is rescanned
        start = len(self._buffer)
        if start and self._buffer.endswith("\r"):
            start -= 1
        self._buffer += text
        return self._drain_lines(start, final)

    def _drain_lines(self, start: int, final: bool) -> list[RawFrame]:
        buf = self._buffer
        frames: list[RawFrame] = []
        line_start = 0
        for match in _LINE_END.finditer(buf, start):
            # A lone \r at the end may be the first half of \r\n
            if match.end() == len(buf) and match.group() == "\r" and not final:
                break
            frame = self._process_line(buf[line_start:match.start()])
            line_start = match.end()
            if frame is not None:
                frames.append(frame)
        if line_start:
            self._buffer = buf[line_start:]
        return frames

    def _process_line(self, line: str) -> RawFrame | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        # id: and retry: carry nothing this client uses
        return None

    def _dispatch(self) -> RawFrame | None:
        if self._event is None and not self._data:
            return None
        frame = RawFrame(
            event=self._event if self._event is not None else DEFAULT_EVENT,
            data="\n".join(self._data),
        )
        self._event = None
        self._data = []
        logger.debug("Frame: %s (%d bytes)", frame.event, len(frame.data))
        return frame


def _as_transport_error(error: Exception) -> TransportError:
    if isinstance(error, TransportError):
        return error
    if isinstance(error, TimeoutError):
        return TransportTimeout(f"read timed out: {error}")
    return TransportError(f"read failed: {error}")


def iter_frames(chunks: Iterable[bytes]) -> Iterator[RawFrame | TransportError]:
    """Yield frames from a synchronous byte-chunk iterable.

    An I/O failure from ``chunks``, or bytes that are not valid UTF-8,
    become a single TransportError item that ends the sequence.
    """
    reader = EventFrameReader()
    try:
        for chunk in chunks:
            yield from reader.feed(chunk)
            if reader.closed:
                return
    except (TransportError, OSError, TimeoutError) as e:
        logger.warning("Event stream read failed: %s", e)
        yield _as_transport_error(e)
        return
    yield from reader.close()


async def aiter_frames(
    chunks: AsyncIterable[bytes],
) -> AsyncIterator[RawFrame | TransportError]:
    """Async counterpart of :func:`iter_frames`."""
    reader = EventFrameReader()
    try:
        async for chunk in chunks:
            for frame in reader.feed(chunk):
                yield frame
            if reader.closed:
                return
    except (TransportError, OSError, TimeoutError) as e:
        logger.warning("Event stream read failed: %s", e)
        yield _as_transport_error(e)
        return
    for frame in reader.close():
        yield frame
