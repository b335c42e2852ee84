"""unigate - unified chat-completion translation for upstream providers."""

from __future__ import annotations

from unigate.adapters import (
    ANTHROPIC_CHAT_COMPLETE_CONFIG,
    AnthropicAdapter,
    ProviderAdapter,
    get_adapter,
    list_providers,
)
from unigate.client import GatewayClient
from unigate.errors import (
    AuthenticationError,
    ConfigurationError,
    GatewayError,
    InvalidRequestError,
    MissingRequiredParameter,
    NotFoundError,
    OverloadedError,
    ParameterError,
    ParameterOutOfRange,
    PermissionDeniedError,
    ProviderError,
    RateLimitError,
    ServerError,
    StreamParseError,
    TransportError,
)
from unigate.messages import extract_system_text, parse_data_uri, transform_messages
from unigate.models import (
    DONE_LINE,
    Choice,
    ContentPart,
    DataURI,
    ErrorKind,
    ImageURLPart,
    Message,
    Role,
    StreamChoice,
    TextPart,
    UnifiedError,
    UnifiedResponse,
    UnifiedStreamChunk,
    Usage,
)
from unigate.params import ParamSpec, ProviderConfig, RangePolicy, build_provider_request
from unigate.settings import GatewaySettings
from unigate.streaming import StreamCollector, iter_sse_fragments, transform_stream

__all__ = [
    # Adapters
    "ANTHROPIC_CHAT_COMPLETE_CONFIG",
    "AnthropicAdapter",
    "ProviderAdapter",
    "get_adapter",
    "list_providers",
    # Transport / settings
    "GatewayClient",
    "GatewaySettings",
    # Parameter mapping
    "ParamSpec",
    "ProviderConfig",
    "RangePolicy",
    "build_provider_request",
    # Messages
    "extract_system_text",
    "parse_data_uri",
    "transform_messages",
    # Streaming
    "StreamCollector",
    "iter_sse_fragments",
    "transform_stream",
    # Errors
    "AuthenticationError",
    "ConfigurationError",
    "GatewayError",
    "InvalidRequestError",
    "MissingRequiredParameter",
    "NotFoundError",
    "OverloadedError",
    "ParameterError",
    "ParameterOutOfRange",
    "PermissionDeniedError",
    "ProviderError",
    "RateLimitError",
    "ServerError",
    "StreamParseError",
    "TransportError",
    # Models
    "DONE_LINE",
    "Choice",
    "ContentPart",
    "DataURI",
    "ErrorKind",
    "ImageURLPart",
    "Message",
    "Role",
    "StreamChoice",
    "TextPart",
    "UnifiedError",
    "UnifiedResponse",
    "UnifiedStreamChunk",
    "Usage",
]
