"""Thin async HTTP transport that drives a provider adapter.

GatewayClient builds the provider body (failing fast on parameter errors),
POSTs it with ``httpx`` and feeds the reply through the adapter. It does no
retries; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx

from unigate.adapters.base import ProviderAdapter
from unigate.errors import TransportError, error_from_status
from unigate.models import UnifiedError, UnifiedResponse
from unigate.settings import GatewaySettings
from unigate.streaming import aiter_sse_fragments, format_sse_data

logger = logging.getLogger(__name__)


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class GatewayClient:
    """Sends unified requests to one provider through its adapter.

    Args:
        adapter: The provider adapter.
        settings: Connection settings; read from the environment if omitted.
        http_client: Pre-configured client, e.g. with a mock transport.
            When omitted one is created lazily and closed by ``aclose()``.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        settings: GatewaySettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._adapter = adapter
        self._settings = settings or GatewaySettings.from_env()
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> GatewayClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._http

    def _url(self) -> str:
        return self._settings.base_url + self._adapter.endpoint()

    def _headers(self) -> dict[str, str]:
        return self._adapter.headers(
            self._settings.api_key, self._settings.api_version
        )

    async def complete(
        self,
        request: Mapping[str, Any],
        *,
        raise_on_error: bool = False,
    ) -> UnifiedResponse | UnifiedError:
        """Send a non-streaming completion request.

        Args:
            request: The unified request.
            raise_on_error: Raise the typed ProviderError for the reply's
                status instead of returning a UnifiedError.

        Returns:
            The unified completion, or a UnifiedError.

        Raises:
            ParameterError: The request could not be mapped; nothing was sent.
            TransportError: The provider could not be reached.
            ProviderError: Only when *raise_on_error* is set.
        """
        body = self._adapter.build_request(dict(request, stream=False))
        provider = self._adapter.provider_name()
        logger.debug("POST %s model=%s", self._url(), body.get("model"))

        t0 = time.monotonic()
        try:
            response = await self._client().post(
                self._url(), json=body, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{provider} request failed: {exc}") from exc
        logger.debug(
            "%s replied %s in %.0f ms",
            provider,
            response.status_code,
            (time.monotonic() - t0) * 1000,
        )

        result = self._adapter.transform_response(
            _decode_body(response), response.status_code
        )
        if raise_on_error and isinstance(result, UnifiedError):
            raise error_from_status(
                result.status_code or response.status_code,
                result.message,
                provider=provider,
                error_type=result.type,
                raw=result.raw,
            )
        return result

    async def stream(
        self,
        request: Mapping[str, Any],
        *,
        fallback_id: str | None = None,
    ) -> AsyncIterator[str]:
        """Send a streaming request, yielding unified SSE lines in order.

        A non-200 reply yields a single ``data:`` line carrying the unified
        error instead of chunks.

        Raises:
            ParameterError: The request could not be mapped; nothing was sent.
            TransportError: The provider could not be reached.
            StreamParseError: A content fragment was corrupt; the stream ends.
        """
        body = self._adapter.build_request(dict(request, stream=True))
        stream_id = fallback_id or f"chatcmpl-{uuid.uuid4().hex}"
        provider = self._adapter.provider_name()
        logger.debug("POST %s (stream) id=%s", self._url(), stream_id)

        try:
            async with self._client().stream(
                "POST", self._url(), json=body, headers=self._headers()
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    error = self._adapter.transform_response(
                        _decode_body(response), response.status_code
                    )
                    yield format_sse_data(error.to_dict())
                    return

                async for fragment in aiter_sse_fragments(response.aiter_lines()):
                    line = self._adapter.transform_stream_fragment(
                        fragment, stream_id
                    )
                    if line is not None:
                        yield line
        except httpx.HTTPError as exc:
            raise TransportError(f"{provider} stream failed: {exc}") from exc
