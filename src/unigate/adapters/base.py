"""Base protocol for provider adapters."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from unigate.models import ErrorKind, UnifiedError, UnifiedResponse
from unigate.params import ProviderConfig, RangePolicy

logger = logging.getLogger(__name__)

INVALID_PROVIDER_RESPONSE = "invalid_provider_response"


@runtime_checkable
class ProviderAdapter(Protocol):
    """Protocol that all provider adapters must satisfy.

    Each adapter translates between the unified chat-completion schema and
    one provider's wire format. Adapters perform no I/O.
    """

    config: ProviderConfig
    range_policy: RangePolicy

    def provider_name(self) -> str:
        """Return the provider identity stamped into unified output."""
        ...

    def endpoint(self) -> str:
        """Return the completion path relative to the provider base URL."""
        ...

    def headers(self, api_key: str, api_version: str) -> dict[str, str]:
        """Return the HTTP headers for an authenticated request."""
        ...

    def build_request(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Map a unified request to the provider request body."""
        ...

    def transform_response(
        self, payload: Any, status_code: int
    ) -> UnifiedResponse | UnifiedError:
        """Map a complete provider reply to unified form."""
        ...

    def transform_stream_fragment(
        self, raw_fragment: str, fallback_id: str
    ) -> str | None:
        """Map one raw SSE fragment to a unified SSE line, or None."""
        ...


def invalid_provider_response(
    payload: Any, provider: str, status_code: int | None = None
) -> UnifiedError:
    """Build the error returned for a payload of unrecognised shape.

    The raw payload is serialized into the message and kept on ``raw``.
    Payloads JSON cannot represent fall back to their ``repr``.
    """
    try:
        dumped = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        dumped = repr(payload)
    logger.warning(
        "Unrecognised response from %s (status %s): %.200s",
        provider,
        status_code,
        dumped,
    )
    return UnifiedError(
        message=f"Invalid response received from {provider}: {dumped}",
        type=INVALID_PROVIDER_RESPONSE,
        provider=provider,
        kind=ErrorKind.INVALID_PROVIDER_RESPONSE,
        status_code=status_code,
        raw=payload,
    )
