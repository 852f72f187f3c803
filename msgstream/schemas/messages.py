"""Conversation message schemas.

A message pairs a role with content, which is either a plain string or a
list of content blocks. Messages are frozen once built.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Role(StrEnum):
    """Author of a message in the conversation."""

    USER = "user"
    ASSISTANT = "assistant"


class ImageMediaType(StrEnum):
    """Image formats accepted in image content blocks."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    GIF = "image/gif"
    WEBP = "image/webp"


class TextContentBlock(BaseModel):
    """A block of plain text."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str = Field(description="Text content")


class ImageContentSource(BaseModel):
    """Inline base64-encoded image data."""

    model_config = ConfigDict(frozen=True)

    type: Literal["base64"] = "base64"
    media_type: ImageMediaType = Field(description="MIME type of the image")
    data: str = Field(description="Base64-encoded image bytes")


class ImageContentBlock(BaseModel):
    """An image supplied as input."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    source: ImageContentSource


ContentBlock = Annotated[
    TextContentBlock | ImageContentBlock, Field(discriminator="type")
]


class Message(BaseModel):
    """One turn of the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Who authored this turn")
    content: str | tuple[ContentBlock, ...] = Field(
        description="Plain text or an ordered sequence of content blocks"
    )

    @classmethod
    def user(cls, content: str | list[ContentBlock] | tuple[ContentBlock, ...]) -> Message:
        return cls(role=Role.USER, content=_freeze(content))

    @classmethod
    def assistant(cls, content: str | list[ContentBlock] | tuple[ContentBlock, ...]) -> Message:
        return cls(role=Role.ASSISTANT, content=_freeze(content))

    @property
    def text(self) -> str:
        """Concatenated text of the message, ignoring non-text blocks."""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            block.text for block in self.content if isinstance(block, TextContentBlock)
        )

    def to_payload(self) -> dict[str, Any]:
        """Wire representation of the message."""
        if isinstance(self.content, str):
            content: str | list[dict[str, Any]] = self.content
        else:
            content = [block.model_dump(mode="json") for block in self.content]
        return {"role": self.role.value, "content": content}


def _freeze(content: str | list[ContentBlock] | tuple[ContentBlock, ...]):
    return content if isinstance(content, str) else tuple(content)
