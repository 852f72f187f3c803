"""msgstream schema definitions.

Pydantic v2 models for value types, requests, responses and stream chunks.
"""

from msgstream.schemas.config import ClientConfig, ModelLimit
from msgstream.schemas.models import ClaudeModel
from msgstream.schemas.values import (
    MaxTokens,
    StopSequence,
    SystemPrompt,
    Temperature,
    TopK,
    TopP,
    new_system_prompt,
    new_token_budget,
)
from msgstream.schemas.messages import (
    ContentBlock,
    ImageContentBlock,
    ImageContentSource,
    ImageMediaType,
    Message,
    Role,
    TextContentBlock,
)
from msgstream.schemas.request import (
    Metadata,
    MessagesRequestBody,
    RequestOptions,
    build_request,
)
from msgstream.schemas.response import MessagesResponseBody, StopReason, Usage
from msgstream.schemas.streaming import (
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
    TextBlockStart,
    TextDelta,
    UnknownChunk,
)

__all__ = [
    "ChunkType",
    "ClaudeModel",
    "ClientConfig",
    "ContentBlock",
    "ContentBlockDeltaChunk",
    "ContentBlockStartChunk",
    "ContentBlockStopChunk",
    "ErrorChunk",
    "ImageContentBlock",
    "ImageContentSource",
    "ImageMediaType",
    "MaxTokens",
    "Message",
    "MessageDeltaChunk",
    "MessageStartChunk",
    "MessageStopChunk",
    "MessagesRequestBody",
    "MessagesResponseBody",
    "Metadata",
    "ModelLimit",
    "PingChunk",
    "RequestOptions",
    "Role",
    "StopReason",
    "StopSequence",
    "StreamChunk",
    "StreamItem",
    "SystemPrompt",
    "Temperature",
    "TextBlockStart",
    "TextContentBlock",
    "TextDelta",
    "TopK",
    "TopP",
    "UnknownChunk",
    "Usage",
    "build_request",
    "new_system_prompt",
    "new_token_budget",
]
