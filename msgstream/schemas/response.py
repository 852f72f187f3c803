"""Response schemas shared by the one-shot and streaming paths."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from msgstream.schemas.messages import Role, TextContentBlock


class StopReason(StrEnum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"


class Usage(BaseModel):
    """Token counts reported by the API, passed through unchanged."""

    input_tokens: int = Field(default=0, ge=0, description="Input tokens consumed")
    output_tokens: int = Field(default=0, ge=0, description="Output tokens generated")


class MessagesResponseBody(BaseModel):
    """A complete (non-streamed) response."""

    id: str = Field(description="Unique message id")
    type: Literal["message"] = "message"
    role: Role = Role.ASSISTANT
    content: list[TextContentBlock] = Field(default_factory=list)
    model: str = Field(description="Model that produced the response")
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    @property
    def text(self) -> str:
        """All text blocks joined in order."""
        return "".join(block.text for block in self.content)

    def __str__(self) -> str:
        return self.model_dump_json(indent=2)
