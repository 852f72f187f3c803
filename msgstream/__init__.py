"""msgstream: typed Messages API client with a streaming event decoder."""

__version__ = "0.1.0"

from .client import MessagesClient
from .schemas import (
    ClaudeModel,
    MaxTokens,
    Message,
    MessagesRequestBody,
    MessagesResponseBody,
    RequestOptions,
    SystemPrompt,
    build_request,
)
from .streaming import CompletedMessage, afold, fold

__all__ = [
    "ClaudeModel",
    "CompletedMessage",
    "MaxTokens",
    "Message",
    "MessagesClient",
    "MessagesRequestBody",
    "MessagesResponseBody",
    "RequestOptions",
    "SystemPrompt",
    "afold",
    "build_request",
    "fold",
]
