"""Core data models for the unified chat-completion schema.

Defines the unified message format and content parts consumed by the
request builder, and the completion, stream-chunk and error shapes produced
by provider adapters. Output models render to plain JSON-ready dicts via
``to_dict()`` with a stable key order.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

# Wall-clock source returning UNIX seconds; injected for deterministic tests.
Clock = Callable[[], float]

DONE_LINE = "data: [DONE]\n\n"

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Role(str, enum.Enum):
    """Message roles of the unified schema."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ContentKind(str, enum.Enum):
    """Discriminator for the ContentPart tagged union."""

    TEXT = "text"
    IMAGE_URL = "image_url"
    UNSUPPORTED = "unsupported"


class ErrorKind(str, enum.Enum):
    """Distinguishes recognised provider errors from unrecognised payloads."""

    PROVIDER_ERROR = "provider_error"
    INVALID_PROVIDER_RESPONSE = "invalid_provider_response"


# ---------------------------------------------------------------------------
# Content Parts (Tagged Union)
# ---------------------------------------------------------------------------


@dataclass
class TextPart:
    """Plain text content."""

    kind: ContentKind = field(default=ContentKind.TEXT, init=False)
    text: str = ""


@dataclass
class ImageURLPart:
    """Image referenced by URL, normally a base64 ``data:`` URI."""

    kind: ContentKind = field(default=ContentKind.IMAGE_URL, init=False)
    url: str = ""


@dataclass
class UnsupportedPart:
    """A part type this layer does not translate; kept to preserve positions."""

    kind: ContentKind = field(default=ContentKind.UNSUPPORTED, init=False)
    type: str = ""
    raw: Any = None


ContentPart = TextPart | ImageURLPart | UnsupportedPart


def content_part_from_dict(data: Any) -> ContentPart:
    """Decode one unified wire content part.

    Args:
        data: A dict such as ``{"type": "text", "text": "hi"}`` or
            ``{"type": "image_url", "image_url": {"url": "data:..."}}``.
            Already-decoded parts are returned unchanged.

    Returns:
        The matching ContentPart variant.
    """
    if isinstance(data, (TextPart, ImageURLPart, UnsupportedPart)):
        return data
    if not isinstance(data, Mapping):
        return UnsupportedPart(type=type(data).__name__, raw=data)

    part_type = data.get("type")
    if part_type == ContentKind.TEXT.value:
        return TextPart(text=data.get("text") or "")
    if part_type == ContentKind.IMAGE_URL.value:
        image_url = data.get("image_url")
        if isinstance(image_url, Mapping):
            url = image_url.get("url")
        else:
            url = image_url
        if isinstance(url, str) and url:
            return ImageURLPart(url=url)
    return UnsupportedPart(type=str(part_type or ""), raw=dict(data))


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass
class Message:
    """A single message of the unified conversation.

    ``content`` is either a plain string or an ordered list of parts.
    ``role`` is kept as a plain string so roles unknown to this layer pass
    through untouched; compare it against :class:`Role` members.
    """

    role: str
    content: str | list[ContentPart] | None = None

    @staticmethod
    def system(text: str) -> Message:
        """Create a system message with string content."""
        return Message(role=Role.SYSTEM.value, content=text)

    @staticmethod
    def user(text: str) -> Message:
        """Create a user message with string content."""
        return Message(role=Role.USER.value, content=text)

    @staticmethod
    def assistant(text: str) -> Message:
        """Create an assistant message with string content."""
        return Message(role=Role.ASSISTANT.value, content=text)

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        """Coerce a unified wire message (or a Message) into a Message.

        Raises:
            TypeError: If *data* is neither a mapping nor a Message.
        """
        if isinstance(data, Message):
            return data
        if not isinstance(data, Mapping):
            raise TypeError(f"Expected a message mapping, got {type(data).__name__}")

        role = data.get("role", "")
        if isinstance(role, Role):
            role = role.value
        content = data.get("content")
        if isinstance(content, list):
            content = [content_part_from_dict(p) for p in content]
        return cls(role=str(role), content=content)

    @property
    def is_system(self) -> bool:
        return self.role == Role.SYSTEM.value


@dataclass
class DataURI:
    """A decoded ``data:<media_type>;base64,<data>`` image reference."""

    media_type: str
    data: str


# ---------------------------------------------------------------------------
# Unified completion
# ---------------------------------------------------------------------------


@dataclass
class Usage:
    """Token consumption in unified terms."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class Choice:
    """One completion choice of a non-streamed response."""

    content: str = ""
    role: str = Role.ASSISTANT.value
    index: int = 0
    finish_reason: str | None = None
    logprobs: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": {"role": self.role, "content": self.content},
            "index": self.index,
            "logprobs": self.logprobs,
            "finish_reason": self.finish_reason,
        }


@dataclass
class UnifiedResponse:
    """A complete, non-streamed chat completion in unified form."""

    id: str
    created: int
    model: str
    provider: str
    choices: list[Choice] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    object: str = "chat_completion"

    def text(self) -> str:
        """Content of the first choice, or an empty string."""
        return self.choices[0].content if self.choices else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "provider": self.provider,
            "choices": [c.to_dict() for c in self.choices],
            "usage": self.usage.to_dict(),
        }


# ---------------------------------------------------------------------------
# Unified streaming
# ---------------------------------------------------------------------------


@dataclass
class StreamChoice:
    """One choice of a streamed chunk.

    ``content`` is omitted from the serialized delta when None.
    """

    content: str | None = None
    index: int = 0
    finish_reason: str | None = None
    logprobs: Any = None

    def to_dict(self) -> dict[str, Any]:
        delta: dict[str, Any] = {}
        if self.content is not None:
            delta["content"] = self.content
        return {
            "delta": delta,
            "index": self.index,
            "logprobs": self.logprobs,
            "finish_reason": self.finish_reason,
        }


@dataclass
class UnifiedStreamChunk:
    """A single streamed chunk in unified form."""

    id: str
    created: int
    provider: str
    model: str = ""
    choices: list[StreamChoice] = field(default_factory=list)
    object: str = "chat.completion.chunk"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "provider": self.provider,
            "choices": [c.to_dict() for c in self.choices],
        }


# ---------------------------------------------------------------------------
# Unified error
# ---------------------------------------------------------------------------


@dataclass
class UnifiedError:
    """A provider failure in unified form.

    Attributes:
        message: Human-readable error message.
        type: Provider error type, or ``invalid_provider_response``.
        provider: Provider identity.
        param: Offending parameter, always None for provider errors.
        code: Error code, always None for provider errors.
        kind: Whether the provider sent a recognised error or an
            unrecognised payload. Not serialized.
        status_code: HTTP status of the provider reply. Not serialized.
        raw: The raw provider payload, kept for diagnostics. Not serialized.
    """

    message: str
    type: str | None
    provider: str
    param: str | None = None
    code: str | None = None
    kind: ErrorKind = ErrorKind.PROVIDER_ERROR
    status_code: int | None = None
    raw: Any = field(default=None, repr=False)

    @property
    def is_invalid_provider_response(self) -> bool:
        return self.kind == ErrorKind.INVALID_PROVIDER_RESPONSE

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "message": self.message,
                "type": self.type,
                "param": self.param,
                "code": self.code,
            },
            "provider": self.provider,
        }
