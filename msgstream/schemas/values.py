"""Constrained value types used to build requests.

Each type validates at construction through its ``new()`` classmethod and
is frozen afterwards. Failures raise the typed errors from
:mod:`msgstream.errors`, never pydantic's own ValidationError, so callers
can catch one taxonomy.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from msgstream import registry
from msgstream.errors import ExceedsModelLimit, NonPositive, OutOfRange
from msgstream.schemas.models import ClaudeModel


class MaxTokens(BaseModel):
    """Validated output-token budget bound to the model it was checked against."""

    model_config = ConfigDict(frozen=True)

    value: int = Field(gt=0, description="Maximum number of tokens to generate")
    model: ClaudeModel = Field(description="Model whose ceiling this value was checked against")

    @classmethod
    def new(cls, requested: int, model: ClaudeModel) -> MaxTokens:
        """Validate ``requested`` against the ceiling of ``model``.

        Raises:
            OutOfRange: If ``requested`` is not an integer.
            NonPositive: If ``requested <= 0``.
            ExceedsModelLimit: If ``requested`` is above the model's ceiling.
        """
        model = ClaudeModel(model)
        if not _is_int(requested):
            raise OutOfRange("max_tokens", requested, "a positive integer")
        if requested <= 0:
            raise NonPositive(requested)
        limit = registry.max_output_tokens(model)
        if requested > limit:
            raise ExceedsModelLimit(requested, limit, model.value)
        return cls(value=requested, model=model)

    @classmethod
    def from_model(cls, model: ClaudeModel) -> MaxTokens:
        """The largest budget ``model`` accepts."""
        model = ClaudeModel(model)
        return cls(value=registry.max_output_tokens(model), model=model)

    def __int__(self) -> int:
        return self.value


class SystemPrompt(BaseModel):
    """System prompt text.

    Empty text is accepted; the API treats it as no system prompt at all,
    which is rarely what a caller intends.
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(description="System prompt text")

    @classmethod
    def new(cls, text: str) -> SystemPrompt:
        return cls(value=text)

    def __str__(self) -> str:
        return self.value


class Temperature(BaseModel):
    """Sampling temperature in [0.0, 1.0]."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(ge=0.0, le=1.0)

    @classmethod
    def new(cls, value: float) -> Temperature:
        if not _is_number(value) or not 0.0 <= value <= 1.0:
            raise OutOfRange("temperature", value, "between 0.0 and 1.0")
        return cls(value=value)


class TopP(BaseModel):
    """Nucleus sampling cutoff in [0.0, 1.0]."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(ge=0.0, le=1.0)

    @classmethod
    def new(cls, value: float) -> TopP:
        if not _is_number(value) or not 0.0 <= value <= 1.0:
            raise OutOfRange("top_p", value, "between 0.0 and 1.0")
        return cls(value=value)


class TopK(BaseModel):
    """Top-k sampling cutoff, a non-negative integer."""

    model_config = ConfigDict(frozen=True)

    value: int = Field(ge=0)

    @classmethod
    def new(cls, value: int) -> TopK:
        if not _is_int(value) or value < 0:
            raise OutOfRange("top_k", value, "a non-negative integer")
        return cls(value=value)


class StopSequence(BaseModel):
    """Custom text sequence that stops generation."""

    model_config = ConfigDict(frozen=True)

    value: str

    @classmethod
    def new(cls, text: str) -> StopSequence:
        return cls(value=text)


def new_token_budget(requested: int, model: ClaudeModel) -> MaxTokens:
    """Functional alias of :meth:`MaxTokens.new`."""
    return MaxTokens.new(requested, model)


def new_system_prompt(text: str) -> SystemPrompt:
    """Functional alias of :meth:`SystemPrompt.new`."""
    return SystemPrompt.new(text)


# bool is an int subclass but never a meaningful count or ratio
def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
