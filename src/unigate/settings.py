"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from unigate.errors import ConfigurationError
from unigate.params import RangePolicy

DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60.0


@dataclass
class GatewaySettings:
    """Connection and translation settings for one provider.

    Raises:
        ConfigurationError: If ``timeout`` is not positive.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT
    range_policy: RangePolicy = RangePolicy.REJECT

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GatewaySettings:
        """Create settings from environment variables.

        Environment variables:
            ANTHROPIC_API_KEY: Provider API key.
            UNIGATE_ANTHROPIC_BASE_URL: Base URL of the Messages API.
            UNIGATE_ANTHROPIC_VERSION: Value of the ``anthropic-version`` header.
            UNIGATE_TIMEOUT: Request timeout in seconds.
            UNIGATE_RANGE_POLICY: ``reject`` or ``clamp``.

        Raises:
            ConfigurationError: If a value cannot be parsed.
        """
        env = os.environ if environ is None else environ

        raw_timeout = env.get("UNIGATE_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigurationError(
                f"UNIGATE_TIMEOUT must be a number, got {raw_timeout!r}"
            ) from None

        raw_policy = env.get("UNIGATE_RANGE_POLICY", RangePolicy.REJECT.value)
        try:
            policy = RangePolicy(raw_policy.strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"UNIGATE_RANGE_POLICY must be 'reject' or 'clamp', got {raw_policy!r}"
            ) from None

        return cls(
            api_key=env.get("ANTHROPIC_API_KEY", ""),
            base_url=env.get("UNIGATE_ANTHROPIC_BASE_URL", DEFAULT_BASE_URL),
            api_version=env.get("UNIGATE_ANTHROPIC_VERSION", DEFAULT_API_VERSION),
            timeout=timeout,
            range_policy=policy,
        )
