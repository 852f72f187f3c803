"""Streaming pipeline: bytes -> frames -> typed chunks -> completed message."""

from msgstream.streaming.aggregator import (
    CompletedMessage,
    StreamAccumulator,
    afold,
    fold,
)
from msgstream.streaming.decoder import (
    ChunkDecoder,
    DecoderState,
    DecodeState,
    adecode_frames,
    decode_frames,
)
from msgstream.streaming.frames import (
    EventFrameReader,
    RawFrame,
    aiter_frames,
    iter_frames,
)

__all__ = [
    "ChunkDecoder",
    "CompletedMessage",
    "DecodeState",
    "DecoderState",
    "EventFrameReader",
    "RawFrame",
    "StreamAccumulator",
    "adecode_frames",
    "afold",
    "aiter_frames",
    "decode_frames",
    "fold",
    "iter_frames",
]
