"""Provider adapters and the provider registry."""

from __future__ import annotations

from typing import Any

from unigate.adapters.anthropic_adapter import (
    ANTHROPIC,
    ANTHROPIC_CHAT_COMPLETE_CONFIG,
    AnthropicAdapter,
)
from unigate.adapters.base import ProviderAdapter
from unigate.errors import ConfigurationError

_PROVIDERS: dict[str, type[Any]] = {
    ANTHROPIC: AnthropicAdapter,
}


def list_providers() -> list[str]:
    """Return the registered provider identities, sorted."""
    return sorted(_PROVIDERS)


def get_adapter(provider: str, **kwargs: Any) -> ProviderAdapter:
    """Instantiate the adapter registered for *provider*.

    Args:
        provider: Provider identity, e.g. ``"anthropic"``.
        **kwargs: Forwarded to the adapter constructor.

    Raises:
        ConfigurationError: If no adapter is registered for *provider*.
    """
    try:
        cls = _PROVIDERS[provider]
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider {provider!r}; expected one of {list_providers()}"
        ) from None
    return cls(provider=provider, **kwargs)


__all__ = [
    "ANTHROPIC",
    "ANTHROPIC_CHAT_COMPLETE_CONFIG",
    "AnthropicAdapter",
    "ProviderAdapter",
    "get_adapter",
    "list_providers",
]
