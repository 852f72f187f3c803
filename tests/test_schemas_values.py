"""Tests for msgstream.schemas.values: validated value types."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from msgstream.errors import ExceedsModelLimit, NonPositive, OutOfRange, ValidationError
from msgstream.registry import max_output_tokens
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


class TestClaudeModel:
    def test_wire_ids(self):
        assert ClaudeModel.CLAUDE_3_HAIKU_20240307 == "claude-3-haiku-20240307"
        assert ClaudeModel("claude-3-5-sonnet-20240620") is ClaudeModel.CLAUDE_3_5_SONNET_20240620

    def test_unknown_model_rejected(self):
        with pytest.raises(ValueError):
            ClaudeModel("claude-99")


class TestMaxTokens:
    @pytest.mark.parametrize("model", list(ClaudeModel))
    @pytest.mark.parametrize("requested", [1, 1024])
    def test_within_ceiling(self, model, requested):
        budget = MaxTokens.new(requested, model)
        assert budget.value == requested
        assert budget.model is model

    @pytest.mark.parametrize("model", list(ClaudeModel))
    def test_exactly_ceiling(self, model):
        ceiling = max_output_tokens(model)
        assert MaxTokens.new(ceiling, model).value == ceiling

    @pytest.mark.parametrize("model", list(ClaudeModel))
    def test_above_ceiling(self, model):
        ceiling = max_output_tokens(model)
        with pytest.raises(ExceedsModelLimit) as exc_info:
            MaxTokens.new(ceiling + 1, model)
        assert exc_info.value.limit == ceiling
        assert exc_info.value.requested == ceiling + 1

    def test_sonnet_35_has_larger_ceiling(self):
        assert MaxTokens.new(8192, ClaudeModel.CLAUDE_3_5_SONNET_20240620).value == 8192
        with pytest.raises(ExceedsModelLimit):
            MaxTokens.new(8192, ClaudeModel.CLAUDE_3_HAIKU_20240307)

    @pytest.mark.parametrize("requested", [0, -1, -4096])
    def test_non_positive(self, requested):
        with pytest.raises(NonPositive):
            MaxTokens.new(requested, ClaudeModel.CLAUDE_3_OPUS_20240229)

    @pytest.mark.parametrize("requested", [2.5, "10", True, None])
    def test_non_integer(self, requested):
        with pytest.raises(OutOfRange) as exc_info:
            MaxTokens.new(requested, ClaudeModel.CLAUDE_3_HAIKU_20240307)
        assert exc_info.value.name == "max_tokens"

    def test_errors_share_base_class(self):
        with pytest.raises(ValidationError):
            MaxTokens.new(0, ClaudeModel.CLAUDE_2_1)
        with pytest.raises(ValidationError):
            MaxTokens.new(2.5, ClaudeModel.CLAUDE_2_1)

    def test_accepts_model_string(self):
        budget = MaxTokens.new(10, "claude-2.1")
        assert budget.model is ClaudeModel.CLAUDE_2_1

    def test_from_model(self):
        budget = MaxTokens.from_model(ClaudeModel.CLAUDE_3_OPUS_20240229)
        assert budget.value == 4096
        assert int(budget) == 4096

    def test_immutable(self):
        budget = MaxTokens.new(10, ClaudeModel.CLAUDE_2_0)
        with pytest.raises(PydanticValidationError):
            budget.value = 20

    def test_functional_alias(self):
        assert new_token_budget(5, ClaudeModel.CLAUDE_2_0) == MaxTokens.new(5, ClaudeModel.CLAUDE_2_0)


class TestSystemPrompt:
    def test_wraps_text(self):
        prompt = SystemPrompt.new("You are terse.")
        assert prompt.value == "You are terse."
        assert str(prompt) == "You are terse."

    def test_empty_allowed(self):
        assert new_system_prompt("").value == ""


class TestSamplingValues:
    @pytest.mark.parametrize("value", [0.0, 0.5, 1.0])
    def test_temperature_in_range(self, value):
        assert Temperature.new(value).value == value

    @pytest.mark.parametrize("value", [-0.1, 1.01, float("nan")])
    def test_temperature_out_of_range(self, value):
        with pytest.raises(OutOfRange) as exc_info:
            Temperature.new(value)
        assert exc_info.value.name == "temperature"

    @pytest.mark.parametrize("value", [-0.5, 2.0])
    def test_top_p_out_of_range(self, value):
        with pytest.raises(OutOfRange):
            TopP.new(value)

    def test_top_p_in_range(self):
        assert TopP.new(0.9).value == 0.9

    @pytest.mark.parametrize("value", ["0.5", True, None])
    def test_non_numeric_sampling_values(self, value):
        with pytest.raises(OutOfRange):
            Temperature.new(value)
        with pytest.raises(OutOfRange):
            TopP.new(value)

    def test_top_k(self):
        assert TopK.new(0).value == 0
        assert TopK.new(40).value == 40

    @pytest.mark.parametrize("value", [-1, 2.5, True])
    def test_top_k_invalid(self, value):
        with pytest.raises(OutOfRange):
            TopK.new(value)

    def test_stop_sequence(self):
        assert StopSequence.new("\n\nHuman:").value == "\n\nHuman:"
