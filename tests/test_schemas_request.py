"""Tests for msgstream.schemas.messages and msgstream.schemas.request."""

import pytest

from msgstream.errors import EmptyMessages, ModelMismatch, OutOfRange
from msgstream.schemas.messages import (
    ImageContentBlock,
    ImageContentSource,
    ImageMediaType,
    Message,
    Role,
    TextContentBlock,
)
from msgstream.schemas.models import ClaudeModel
from msgstream.schemas.request import Metadata, RequestOptions, build_request
from msgstream.schemas.values import MaxTokens, SystemPrompt, Temperature

_MODEL = ClaudeModel.CLAUDE_3_HAIKU_20240307


def _budget(value: int = 1024) -> MaxTokens:
    return MaxTokens.new(value, _MODEL)


class TestMessage:
    def test_user_text(self):
        message = Message.user("Where is the capital of Japan?")
        assert message.role is Role.USER
        assert message.to_payload() == {
            "role": "user",
            "content": "Where is the capital of Japan?",
        }

    def test_assistant_blocks(self):
        message = Message.assistant([TextContentBlock(text="Tokyo"), TextContentBlock(text=".")])
        assert message.role is Role.ASSISTANT
        assert message.text == "Tokyo."
        assert message.to_payload()["content"] == [
            {"type": "text", "text": "Tokyo"},
            {"type": "text", "text": "."},
        ]

    def test_image_block_payload(self):
        image = ImageContentBlock(
            source=ImageContentSource(media_type=ImageMediaType.PNG, data="iVBORw0KGgo=")
        )
        message = Message.user([image, TextContentBlock(text="What is this?")])
        assert message.text == "What is this?"
        assert message.to_payload()["content"][0] == {
            "type": "image",
            "source": {"type": "base64", "media_type": "image/png", "data": "iVBORw0KGgo="},
        }

    def test_blocks_from_dicts(self):
        message = Message(role="user", content=[{"type": "text", "text": "hi"}])
        assert message.content == (TextContentBlock(text="hi"),)

    def test_frozen(self):
        message = Message.user("hi")
        with pytest.raises(Exception):
            message.role = Role.ASSISTANT


class TestBuildRequest:
    def test_minimal_payload(self):
        request = build_request(_MODEL, [Message.user("hi")], _budget())
        assert request.to_payload() == {
            "model": "claude-3-haiku-20240307",
            "messages": [{"role": "user", "content": "hi"}],
            "max_tokens": 1024,
        }
        assert request.stream is False

    def test_all_options(self):
        request = build_request(
            _MODEL,
            [Message.user("hi")],
            _budget(256),
            RequestOptions(
                system="You are a excellent AI assistant.",
                stream=True,
                temperature=0.3,
                top_p=0.9,
                top_k=20,
                stop_sequences=["STOP"],
                metadata=Metadata(user_id="u-1"),
            ),
        )
        payload = request.to_payload()
        assert payload["system"] == "You are a excellent AI assistant."
        assert payload["stream"] is True
        assert payload["temperature"] == 0.3
        assert payload["top_p"] == 0.9
        assert payload["top_k"] == 20
        assert payload["stop_sequences"] == ["STOP"]
        assert payload["metadata"] == {"user_id": "u-1"}

    def test_prewrapped_values_kept(self):
        system = SystemPrompt.new("sys")
        temperature = Temperature.new(0.1)
        request = build_request(
            _MODEL, [Message.user("hi")], _budget(),
            RequestOptions(system=system, temperature=temperature),
        )
        assert request.system is system
        assert request.temperature is temperature

    @pytest.mark.parametrize(
        "options",
        [
            RequestOptions(temperature=1.5),
            RequestOptions(top_p=-0.1),
            RequestOptions(top_k=-3),
        ],
    )
    def test_out_of_range_options(self, options):
        with pytest.raises(OutOfRange):
            build_request(_MODEL, [Message.user("hi")], _budget(), options)

    def test_empty_messages(self):
        with pytest.raises(EmptyMessages):
            build_request(_MODEL, [], _budget())

    def test_budget_for_other_model(self):
        other = MaxTokens.new(100, ClaudeModel.CLAUDE_3_OPUS_20240229)
        with pytest.raises(ModelMismatch):
            build_request(_MODEL, [Message.user("hi")], other)

    def test_with_stream(self):
        request = build_request(_MODEL, [Message.user("hi")], _budget())
        streamed = request.with_stream(True)
        assert streamed.stream is True
        assert request.stream is False

    def test_empty_system_prompt_sent(self):
        request = build_request(
            _MODEL, [Message.user("hi")], _budget(), RequestOptions(system=SystemPrompt.new(""))
        )
        assert request.to_payload()["system"] == ""
