"""Configuration schemas for the client and the model-limit table.

Loaded from the TOML files under ``msgstream/config/`` by
:mod:`msgstream.registry`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from msgstream.schemas.models import ClaudeModel


class ModelLimit(BaseModel):
    """One row of the model-limit table."""

    model: ClaudeModel = Field(description="Wire model id")
    display_name: str = Field(description="Human-friendly model name for CLI output")
    max_output_tokens: int = Field(gt=0, description="Maximum output tokens per response")


class ClientConfig(BaseModel):
    """Connection settings for MessagesClient.

    Timeouts apply to the initial request and to every individual read of a
    streamed body. ``max_retries`` only covers the initial request; a stream
    that has started delivering bytes is never retried.
    """

    base_url: str = Field(
        default="https://api.anthropic.com", description="API base URL"
    )
    api_version: str = Field(
        default="2023-06-01", description="Value of the anthropic-version header"
    )
    timeout: float = Field(
        default=600.0, gt=0, description="Read timeout in seconds"
    )
    connect_timeout: float = Field(
        default=10.0, gt=0, description="Connect timeout in seconds"
    )
    max_retries: int = Field(
        default=2, ge=0, le=10, description="Retries for the initial request"
    )

    @property
    def messages_url(self) -> str:
        """Full URL of the messages endpoint."""
        return f"{self.base_url.rstrip('/')}/v1/messages"
