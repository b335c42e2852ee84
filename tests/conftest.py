"""Shared fixtures for unigate tests."""

from __future__ import annotations

import os

import pytest
from dotenv import load_dotenv

from unigate.adapters.anthropic_adapter import AnthropicAdapter

# Load API keys for smoke tests from .env.local (project root)
load_dotenv(".env.local")

FIXED_NOW = 1_700_000_000.75
SMOKE_MODEL = "claude-3-5-haiku-latest"


def _has_key(env_var: str) -> bool:
    """Return True if the environment variable is set and non-placeholder."""
    val = os.environ.get(env_var, "")
    return bool(val) and val != "your-key-here"


def fixed_clock() -> float:
    return FIXED_NOW


@pytest.fixture()
def adapter() -> AnthropicAdapter:
    """An Anthropic adapter with a frozen clock."""
    return AnthropicAdapter(clock=fixed_clock)


@pytest.fixture(scope="session")
def requires_anthropic_key() -> None:
    """Skip the test if ANTHROPIC_API_KEY is missing or placeholder."""
    if not _has_key("ANTHROPIC_API_KEY"):
        pytest.skip("ANTHROPIC_API_KEY not set - skipping smoke test")
