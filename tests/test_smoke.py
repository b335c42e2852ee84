"""Smoke tests against the live Anthropic API.

Skipped unless ANTHROPIC_API_KEY is set (optionally via .env.local).
"""

from __future__ import annotations

import pytest

from conftest import SMOKE_MODEL
from unigate.adapters.anthropic_adapter import AnthropicAdapter
from unigate.client import GatewayClient
from unigate.models import DONE_LINE, UnifiedResponse
from unigate.settings import GatewaySettings
from unigate.streaming import StreamCollector

REQUEST = {
    "model": SMOKE_MODEL,
    "max_tokens": 16,
    "messages": [
        {"role": "system", "content": "Reply with a single word."},
        {"role": "user", "content": "Say hello."},
    ],
}


@pytest.mark.asyncio
async def test_live_completion(requires_anthropic_key) -> None:  # noqa: ARG001
    async with GatewayClient(AnthropicAdapter(), GatewaySettings.from_env()) as client:
        result = await client.complete(REQUEST)
    assert isinstance(result, UnifiedResponse)
    assert result.text()
    assert result.usage.total_tokens > 0


@pytest.mark.asyncio
async def test_live_stream(requires_anthropic_key) -> None:  # noqa: ARG001
    lines: list[str] = []
    async with GatewayClient(AnthropicAdapter(), GatewaySettings.from_env()) as client:
        async for line in client.stream(REQUEST):
            lines.append(line)
    assert lines[-1] == DONE_LINE
    result = StreamCollector().collect(lines)
    assert isinstance(result, UnifiedResponse)
    assert result.text()
