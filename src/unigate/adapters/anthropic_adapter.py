"""Anthropic Messages API adapter."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from unigate.adapters.base import invalid_provider_response
from unigate.errors import StreamParseError
from unigate.messages import extract_system_text, transform_messages
from unigate.models import (
    DONE_LINE,
    Choice,
    Clock,
    StreamChoice,
    UnifiedError,
    UnifiedResponse,
    UnifiedStreamChunk,
    Usage,
)
from unigate.params import ParamSpec, ProviderConfig, RangePolicy, build_provider_request
from unigate.streaming import format_sse_data, parse_sse_fragment

logger = logging.getLogger(__name__)

ANTHROPIC = "anthropic"

# Structural stream events with nothing to surface.
_SILENT_EVENTS = frozenset(
    {"ping", "message_start", "content_block_start", "content_block_stop"}
)
_STOP_EVENT = "message_stop"
_ERROR_EVENT = "error"


# ---------------------------------------------------------------------------
# Request mapping
# ---------------------------------------------------------------------------


def _messages_param(request: Mapping[str, Any]) -> list[dict[str, Any]] | None:
    messages = request.get("messages")
    if messages is None:
        return None
    return transform_messages(messages)


def _system_param(request: Mapping[str, Any]) -> str | None:
    messages = request.get("messages")
    if not messages:
        return None
    return extract_system_text(messages) or None


def _stop_param(request: Mapping[str, Any]) -> list[str] | None:
    stop = request.get("stop")
    if isinstance(stop, str):
        return [stop]
    return stop


ANTHROPIC_CHAT_COMPLETE_CONFIG: ProviderConfig = {
    "model": ParamSpec("model", required=True, default="claude-3-haiku-20240307"),
    "messages": (
        ParamSpec("messages", required=True, transform=_messages_param),
        ParamSpec("system", transform=_system_param),
    ),
    "max_tokens": ParamSpec("max_tokens", required=True),
    "temperature": ParamSpec("temperature", default=1, min=0, max=1),
    "top_p": ParamSpec("top_p", min=0, max=1),
    "top_k": ParamSpec("top_k", min=0),
    "stop": ParamSpec("stop_sequences", transform=_stop_param),
    "stream": ParamSpec("stream", default=False),
    "user": ParamSpec("metadata.user_id"),
}


# ---------------------------------------------------------------------------
# Response shapes
# ---------------------------------------------------------------------------


@dataclass
class ErrorBody:
    """``{"type": "error", "error": {"type": ..., "message": ...}}``."""

    message: str
    type: str | None


@dataclass
class MessageBody:
    """A successful Messages API reply."""

    id: str
    model: str
    text: str
    stop_reason: str | None
    input_tokens: int
    output_tokens: int


@dataclass
class UnrecognizedBody:
    """Any payload matching neither known shape."""

    raw: Any


ResponseBody = ErrorBody | MessageBody | UnrecognizedBody


def _token_count(value: Any) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return 0


def decode_response_body(payload: Any, status_code: int) -> ResponseBody:
    """Decode a raw reply into one of the known shapes, in priority order.

    An error body is only recognised on a non-200 status; a 200 reply with
    an ``error`` object and no ``content`` is unrecognised.
    """
    if not isinstance(payload, Mapping):
        return UnrecognizedBody(raw=payload)

    error = payload.get("error")
    if status_code != 200 and isinstance(error, Mapping):
        return ErrorBody(
            message=str(error.get("message", "")),
            type=error.get("type"),
        )

    content = payload.get("content")
    if isinstance(content, list):
        first = content[0] if content else None
        text = first.get("text") if isinstance(first, Mapping) else None
        usage = payload.get("usage")
        if not isinstance(usage, Mapping):
            usage = {}
        return MessageBody(
            id=str(payload.get("id") or ""),
            model=str(payload.get("model") or ""),
            text=text if isinstance(text, str) else "",
            stop_reason=payload.get("stop_reason"),
            input_tokens=_token_count(usage.get("input_tokens")),
            output_tokens=_token_count(usage.get("output_tokens")),
        )

    return UnrecognizedBody(raw=payload)


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class AnthropicAdapter:
    """Adapter for the Anthropic Messages API.

    Args:
        provider: Identity stamped into unified output.
        clock: Wall-clock source for ``created`` timestamps.
        range_policy: Out-of-range handling for numeric parameters.
        config: Parameter mapping table; defaults to
            :data:`ANTHROPIC_CHAT_COMPLETE_CONFIG`.
    """

    def __init__(
        self,
        *,
        provider: str = ANTHROPIC,
        clock: Clock = time.time,
        range_policy: RangePolicy = RangePolicy.REJECT,
        config: ProviderConfig | None = None,
    ) -> None:
        self._provider = provider
        self._clock = clock
        self.range_policy = range_policy
        self.config = config if config is not None else ANTHROPIC_CHAT_COMPLETE_CONFIG

    def provider_name(self) -> str:
        """Return the provider identity, ``"anthropic"`` by default."""
        return self._provider

    def endpoint(self) -> str:
        return "/messages"

    def headers(self, api_key: str, api_version: str) -> dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": api_version,
            "content-type": "application/json",
        }

    def _now(self) -> int:
        return int(self._clock())

    # -----------------------------------------------------------------
    # Request
    # -----------------------------------------------------------------

    def build_request(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Map a unified request to a Messages API body.

        Raises:
            MissingRequiredParameter: ``messages`` or ``max_tokens`` missing.
            ParameterOutOfRange: A sampling parameter is out of range under
                the reject policy.
        """
        return build_provider_request(
            request, self.config, range_policy=self.range_policy
        )

    # -----------------------------------------------------------------
    # Response
    # -----------------------------------------------------------------

    def transform_response(
        self, payload: Any, status_code: int
    ) -> UnifiedResponse | UnifiedError:
        """Map a complete Messages API reply to unified form.

        Never raises on payload shape: anything unrecognised becomes an
        ``invalid_provider_response`` error.
        """
        body = decode_response_body(payload, status_code)

        if isinstance(body, ErrorBody):
            logger.info(
                "Provider error from %s (status %s): %s",
                self._provider,
                status_code,
                body.type,
            )
            return UnifiedError(
                message=body.message,
                type=body.type,
                provider=self._provider,
                status_code=status_code,
                raw=payload,
            )

        if isinstance(body, MessageBody):
            return UnifiedResponse(
                id=body.id,
                created=self._now(),
                model=body.model,
                provider=self._provider,
                choices=[
                    Choice(content=body.text, finish_reason=body.stop_reason)
                ],
                usage=Usage(
                    prompt_tokens=body.input_tokens,
                    completion_tokens=body.output_tokens,
                ),
            )

        return invalid_provider_response(body.raw, self._provider, status_code)

    # -----------------------------------------------------------------
    # Streaming
    # -----------------------------------------------------------------

    def transform_stream_fragment(
        self, raw_fragment: str, fallback_id: str
    ) -> str | None:
        """Map one Messages API SSE fragment to a unified SSE line.

        Args:
            raw_fragment: One blank-line-framed ``event:``/``data:`` unit.
            fallback_id: Id stamped into every chunk of this stream.

        Returns:
            A ``data:`` line ending in a blank line, the ``[DONE]`` marker,
            or None for fragments with nothing to surface.

        Raises:
            StreamParseError: A content-bearing fragment is not a JSON
                object.
        """
        if not raw_fragment.strip():
            return None

        fragment = parse_sse_fragment(raw_fragment)
        if fragment.event in _SILENT_EVENTS:
            return None
        if fragment.event == _STOP_EVENT:
            return DONE_LINE

        try:
            payload = json.loads(fragment.data)
        except json.JSONDecodeError as exc:
            raise StreamParseError(
                f"Malformed {fragment.event or 'data'} fragment from "
                f"{self._provider}: {exc}",
                fragment=raw_fragment,
            ) from exc
        if not isinstance(payload, dict):
            raise StreamParseError(
                f"Stream fragment from {self._provider} is not a JSON object",
                fragment=raw_fragment,
            )

        if fragment.event == _ERROR_EVENT:
            return format_sse_data(self._stream_error(payload).to_dict())

        delta = payload.get("delta")
        if not isinstance(delta, dict):
            delta = {}
        text = delta.get("text")
        chunk = UnifiedStreamChunk(
            id=fallback_id,
            created=self._now(),
            provider=self._provider,
            choices=[
                StreamChoice(
                    content=text if isinstance(text, str) else None,
                    finish_reason=delta.get("stop_reason"),
                )
            ],
        )
        return format_sse_data(chunk.to_dict())

    def _stream_error(self, payload: dict[str, Any]) -> UnifiedError:
        body = decode_response_body(payload, status_code=0)
        if isinstance(body, ErrorBody):
            logger.warning(
                "Stream error event from %s: %s", self._provider, body.type
            )
            return UnifiedError(
                message=body.message,
                type=body.type,
                provider=self._provider,
                raw=payload,
            )
        return invalid_provider_response(payload, self._provider)
