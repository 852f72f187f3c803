"""Exception taxonomy for the msgstream client.

Construction-time problems raise ``ValidationError`` subclasses before any
network activity. Transport and decode failures during a stream are
*yielded* as items of the chunk sequence rather than raised, so callers can
keep the partial content delivered before the failure.
"""

from __future__ import annotations


class MsgStreamError(Exception):
    """Base exception for all msgstream errors."""


# ── Validation ────────────────────────────────────────────────


class ValidationError(MsgStreamError):
    """A value type or request rejected its input at construction."""


class ExceedsModelLimit(ValidationError):
    """Requested token budget is above the model's output ceiling."""

    def __init__(self, requested: int, limit: int, model: str) -> None:
        self.requested = requested
        self.limit = limit
        self.model = model
        super().__init__(
            f"max_tokens {requested} exceeds the limit of {limit} for {model}"
        )


class NonPositive(ValidationError):
    """Requested token budget is zero or negative."""

    def __init__(self, requested: int) -> None:
        self.requested = requested
        super().__init__(f"max_tokens must be positive, got {requested}")


class OutOfRange(ValidationError):
    """A sampling parameter is outside its documented range."""

    def __init__(self, name: str, value: object, bounds: str) -> None:
        self.name = name
        self.value = value
        self.bounds = bounds
        super().__init__(f"{name} must be {bounds}, got {value!r}")


class EmptyMessages(ValidationError):
    """A request was built with no messages."""

    def __init__(self) -> None:
        super().__init__("a request needs at least one message")


class ModelMismatch(ValidationError):
    """The token budget was validated against a different model."""

    def __init__(self, budget_model: str, request_model: str) -> None:
        self.budget_model = budget_model
        self.request_model = request_model
        super().__init__(
            f"max_tokens was validated for {budget_model}, "
            f"but the request targets {request_model}"
        )


class MissingApiKey(MsgStreamError):
    """No API key could be found in the environment or key files."""


# ── Transport ─────────────────────────────────────────────────


class TransportError(MsgStreamError):
    """I/O failure while sending a request or reading the response body."""


class TransportTimeout(TransportError):
    """A connect or read timed out."""


class InvalidEncoding(TransportError):
    """The response body is not valid UTF-8."""


class ApiError(TransportError):
    """The API answered with a non-2xx status.

    ``kind`` and ``message`` come from the error envelope
    (``{"type": "error", "error": {"type": ..., "message": ...}}``) when the
    body has one, otherwise from the raw body text.
    """

    def __init__(self, status_code: int, kind: str, message: str) -> None:
        self.status_code = status_code
        self.kind = kind
        self.message = message
        super().__init__(f"HTTP {status_code} {kind}: {message}")

    @property
    def is_retryable(self) -> bool:
        """Rate limits, overloads and server errors may succeed on retry."""
        return self.status_code == 429 or self.status_code >= 500


class ResponseParseError(MsgStreamError):
    """A non-streaming response body did not match the expected shape."""


# ── Decoding ──────────────────────────────────────────────────


class DecodeError(MsgStreamError):
    """A frame violated the streaming protocol."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class UnexpectedChunk(DecodeError):
    """A chunk arrived in a state that does not allow it."""

    def __init__(self, event_type: str, reason: str) -> None:
        self.event_type = event_type
        self.reason = reason
        super().__init__(event_type, reason)

    def __str__(self) -> str:
        return f"unexpected {self.event_type}: {self.reason}"


class MalformedPayload(DecodeError):
    """The data of a recognized event did not parse into its chunk type."""

    def __init__(self, event_type: str, raw_text: str) -> None:
        self.event_type = event_type
        self.raw_text = raw_text
        super().__init__(event_type, raw_text)

    def __str__(self) -> str:
        return f"malformed {self.event_type} payload: {self.raw_text[:200]!r}"


class UnclosedBlock(DecodeError):
    """message_stop arrived while content blocks were still open."""

    def __init__(self, open_indices: tuple[int, ...]) -> None:
        self.open_indices = open_indices
        super().__init__(open_indices)

    def __str__(self) -> str:
        indices = ", ".join(str(i) for i in self.open_indices)
        return f"message_stop with open content blocks: {indices}"


class ChunkAfterTerminal(DecodeError):
    """A frame arrived after the stream was already terminated."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(event_type)

    def __str__(self) -> str:
        return f"{self.event_type} received after the stream terminated"


class StreamErrorEvent(DecodeError):
    """The server sent an ``error`` event mid-stream."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(kind, message)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


# ── Aggregation ───────────────────────────────────────────────


class AggregationError(MsgStreamError):
    """A chunk sequence could not be folded into a complete message."""


class IncompleteStream(AggregationError):
    """The sequence ended without message_stop."""


class PropagatedDecodeError(AggregationError):
    """The sequence contained an error item.

    The original item is available as ``error`` and as ``__cause__``.
    """

    def __init__(self, error: Exception) -> None:
        self.error = error
        super().__init__(f"stream contained an error: {error}")
