"""Model identifiers served by the Messages API."""

from __future__ import annotations

from enum import StrEnum


class ClaudeModel(StrEnum):
    """Closed set of model versions the client knows how to address.

    Values are the exact ids sent on the wire. Output ceilings live in
    ``config/models.toml`` and are looked up via :mod:`msgstream.registry`.
    """

    CLAUDE_3_OPUS_20240229 = "claude-3-opus-20240229"
    CLAUDE_3_SONNET_20240229 = "claude-3-sonnet-20240229"
    CLAUDE_3_HAIKU_20240307 = "claude-3-haiku-20240307"
    CLAUDE_3_5_SONNET_20240620 = "claude-3-5-sonnet-20240620"
    CLAUDE_2_1 = "claude-2.1"
    CLAUDE_2_0 = "claude-2.0"
    CLAUDE_INSTANT_1_2 = "claude-instant-1.2"
