"""Tests for AnthropicAdapter.transform_response and response shape decoding."""

from __future__ import annotations

import json

import pytest

from conftest import FIXED_NOW, fixed_clock
from unigate.adapters.anthropic_adapter import (
    AnthropicAdapter,
    ErrorBody,
    MessageBody,
    UnrecognizedBody,
    decode_response_body,
)
from unigate.models import ErrorKind, UnifiedError, UnifiedResponse


def _success(**overrides: object) -> dict:
    body: dict = {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-haiku-20240307",
        "content": [{"type": "text", "text": "Hello there"}],
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }
    body.update(overrides)
    return body


def _error(message: str = "Rate limited", type_: str = "rate_limit_error") -> dict:
    return {"type": "error", "error": {"type": type_, "message": message}}


# ---------------------------------------------------------------------------
# Shape decoding
# ---------------------------------------------------------------------------


class TestDecodeResponseBody:
    def test_error_shape_on_non_200(self) -> None:
        body = decode_response_body(_error(), 429)
        assert body == ErrorBody(message="Rate limited", type="rate_limit_error")

    def test_error_shape_on_200_is_not_an_error(self) -> None:
        assert isinstance(decode_response_body(_error(), 200), UnrecognizedBody)

    def test_success_shape(self) -> None:
        body = decode_response_body(_success(), 200)
        assert isinstance(body, MessageBody)
        assert body.text == "Hello there"
        assert body.input_tokens == 10

    def test_success_shape_wins_over_status(self) -> None:
        assert isinstance(decode_response_body(_success(), 500), MessageBody)

    @pytest.mark.parametrize("payload", [{}, {"foo": 1}, [], "oops", None, {"content": "x"}])
    def test_unrecognized(self, payload: object) -> None:
        assert isinstance(decode_response_body(payload, 200), UnrecognizedBody)


# ---------------------------------------------------------------------------
# Success mapping
# ---------------------------------------------------------------------------


class TestSuccessMapping:
    def test_full_mapping(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response(_success(), 200)
        assert isinstance(result, UnifiedResponse)
        assert result.to_dict() == {
            "id": "msg_01",
            "object": "chat_completion",
            "created": int(FIXED_NOW),
            "model": "claude-3-haiku-20240307",
            "provider": "anthropic",
            "choices": [
                {
                    "message": {"role": "assistant", "content": "Hello there"},
                    "index": 0,
                    "logprobs": None,
                    "finish_reason": "end_turn",
                }
            ],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
        }

    def test_total_tokens_is_sum(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response(_success(), 200)
        assert result.usage.total_tokens == 15

    def test_missing_usage_fields_default_to_zero(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response(_success(usage={"output_tokens": 7}), 200)
        assert result.usage.to_dict() == {
            "prompt_tokens": 0,
            "completion_tokens": 7,
            "total_tokens": 7,
        }

    def test_missing_usage_object(self, adapter: AnthropicAdapter) -> None:
        payload = _success()
        del payload["usage"]
        result = adapter.transform_response(payload, 200)
        assert result.usage.total_tokens == 0

    def test_only_first_content_block_is_used(self, adapter: AnthropicAdapter) -> None:
        payload = _success(
            content=[{"type": "text", "text": "first"}, {"type": "text", "text": "second"}]
        )
        assert adapter.transform_response(payload, 200).text() == "first"

    def test_empty_content_yields_empty_text(self, adapter: AnthropicAdapter) -> None:
        assert adapter.transform_response(_success(content=[]), 200).text() == ""

    def test_stop_reason_surfaced_verbatim(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response(_success(stop_reason="max_tokens"), 200)
        assert result.choices[0].finish_reason == "max_tokens"

    def test_provider_identity_is_configurable(self) -> None:
        adapter = AnthropicAdapter(provider="anthropic-eu", clock=fixed_clock)
        assert adapter.transform_response(_success(), 200).provider == "anthropic-eu"

    def test_idempotent_with_fixed_clock(self, adapter: AnthropicAdapter) -> None:
        first = json.dumps(adapter.transform_response(_success(), 200).to_dict())
        second = json.dumps(adapter.transform_response(_success(), 200).to_dict())
        assert first == second


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    def test_provider_error(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response(_error("Slow down"), 429)
        assert isinstance(result, UnifiedError)
        assert result.kind == ErrorKind.PROVIDER_ERROR
        assert result.status_code == 429
        assert result.to_dict() == {
            "error": {
                "message": "Slow down",
                "type": "rate_limit_error",
                "param": None,
                "code": None,
            },
            "provider": "anthropic",
        }

    def test_unrecognized_shape_is_invalid_provider_response(
        self, adapter: AnthropicAdapter
    ) -> None:
        payload = {"unexpected": True}
        result = adapter.transform_response(payload, 200)
        assert isinstance(result, UnifiedError)
        assert result.is_invalid_provider_response
        assert result.type == "invalid_provider_response"
        assert result.raw == payload
        assert result.provider == "anthropic"
        assert '{"unexpected": true}' in result.message

    def test_non_json_body_never_raises(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response("<html>Bad Gateway</html>", 502)
        assert isinstance(result, UnifiedError)
        assert result.is_invalid_provider_response
        assert "Bad Gateway" in result.message

    def test_unserializable_payload_never_raises(self, adapter: AnthropicAdapter) -> None:
        result = adapter.transform_response({"when": object()}, 200)
        assert result.is_invalid_provider_response

    @pytest.mark.parametrize(
        "payload_factory",
        [
            lambda: {(1, 2): "tuple key"},
            lambda: _self_referencing(),
        ],
        ids=["tuple-key", "circular"],
    )
    def test_payload_json_cannot_encode_never_raises(
        self, adapter: AnthropicAdapter, payload_factory
    ) -> None:
        payload = payload_factory()
        result = adapter.transform_response(payload, 200)
        assert isinstance(result, UnifiedError)
        assert result.is_invalid_provider_response
        assert result.message.startswith("Invalid response received from anthropic: ")
        assert result.raw is payload


def _self_referencing() -> dict:
    payload: dict = {"unexpected": True}
    payload["self"] = payload
    return payload
