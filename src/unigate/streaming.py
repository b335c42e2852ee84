"""Server-sent-event helpers for unified streaming.

Provides SSE fragment framing and parsing, an ordered fragment-stream
transformer, and StreamCollector, which folds unified chunk lines back into
a complete UnifiedResponse, or the UnifiedError the stream reported.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from unigate.errors import StreamParseError
from unigate.models import DONE_LINE, Choice, UnifiedError, UnifiedResponse, Usage

logger = logging.getLogger(__name__)

FragmentTransform = Callable[[str, str], "str | None"]


@dataclass
class SSEFragment:
    """One ``event:``/``data:`` framed unit of an SSE stream."""

    event: str | None
    data: str


def parse_sse_fragment(raw: str) -> SSEFragment:
    """Split a raw fragment into its event label and data payload.

    Multiple ``data:`` lines are joined with newlines. A fragment without
    any ``data:`` line uses its remaining non-event text as the payload.
    """
    event: str | None = None
    data_lines: list[str] = []
    other_lines: list[str] = []
    for line in raw.strip().splitlines():
        if line.startswith("event:"):
            if event is None:
                event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data_lines.append(line[len("data:"):].lstrip(" "))
        elif line.strip():
            other_lines.append(line)
    payload = "\n".join(data_lines) if data_lines else "\n".join(other_lines)
    return SSEFragment(event=event, data=payload.strip())


def format_sse_data(payload: dict[str, Any]) -> str:
    """Render *payload* as a compact ``data:`` line terminated by a blank line."""
    return f"data: {json.dumps(payload, separators=(',', ':'))}\n\n"


def _feed_line(buffer: list[str], line: str) -> str | None:
    """Add one transport line to *buffer*; return the fragment it completes.

    A blank line closes the buffered fragment and empties the buffer.
    """
    line = line.rstrip("\r\n")
    if line.strip():
        buffer.append(line)
        return None
    return _flush(buffer)


def _flush(buffer: list[str]) -> str | None:
    if not buffer:
        return None
    fragment = "\n".join(buffer) + "\n\n"
    buffer.clear()
    return fragment


def iter_sse_fragments(lines: Iterable[str]) -> Iterator[str]:
    """Group transport lines into blank-line-terminated SSE fragments."""
    buffer: list[str] = []
    for line in lines:
        fragment = _feed_line(buffer, line)
        if fragment is not None:
            yield fragment
    fragment = _flush(buffer)
    if fragment is not None:
        yield fragment


async def aiter_sse_fragments(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Async counterpart of :func:`iter_sse_fragments`."""
    buffer: list[str] = []
    async for line in lines:
        fragment = _feed_line(buffer, line)
        if fragment is not None:
            yield fragment
    fragment = _flush(buffer)
    if fragment is not None:
        yield fragment


def transform_stream(
    fragments: Iterable[str],
    transform: FragmentTransform,
    fallback_id: str,
) -> Iterator[str]:
    """Apply a per-fragment transform in arrival order, skipping absent output.

    Raises:
        StreamParseError: Propagated from the transform; ends the stream.
    """
    for fragment in fragments:
        line = transform(fragment, fallback_id)
        if line is not None:
            yield line


@dataclass
class StreamCollector:
    """Accumulates unified SSE lines into a complete UnifiedResponse.

    Feed lines via ``process_line()`` or a whole iterable with
    ``collect()``. The collector stops accepting content after the
    ``[DONE]`` marker.
    """

    text_parts: list[str] = field(default_factory=list)
    id: str = ""
    created: int = 0
    model: str = ""
    provider: str = ""
    finish_reason: str | None = None
    error: UnifiedError | None = None
    done: bool = False

    def process_line(self, line: str) -> None:
        """Process one ``data:`` line emitted by a stream transformer."""
        if line.strip() == DONE_LINE.strip():
            self.done = True
            return
        if self.done:
            logger.warning("Ignoring stream line received after [DONE]")
            return

        payload_text = parse_sse_fragment(line).data
        try:
            payload = json.loads(payload_text)
        except json.JSONDecodeError as exc:
            raise StreamParseError(
                f"Malformed unified stream line: {exc}", fragment=line
            ) from exc
        if not isinstance(payload, dict):
            raise StreamParseError(
                "Unified stream line is not a JSON object", fragment=line
            )

        if "error" in payload:
            detail = payload.get("error")
            if not isinstance(detail, dict):
                detail = {"message": str(detail)}
            self.error = UnifiedError(
                message=detail.get("message", ""),
                type=detail.get("type"),
                provider=payload.get("provider", self.provider),
                raw=payload,
            )
            return

        if not self.id:
            self.id = payload.get("id", "")
            self.created = payload.get("created", 0)
            self.provider = payload.get("provider", "")
        if payload.get("model"):
            self.model = payload["model"]

        for choice in payload.get("choices", []):
            content = choice.get("delta", {}).get("content")
            if content:
                self.text_parts.append(content)
            if choice.get("finish_reason") is not None:
                self.finish_reason = choice["finish_reason"]

    def collect(self, lines: Iterable[str]) -> UnifiedResponse | UnifiedError:
        """Consume every line and return the assembled response or error."""
        for line in lines:
            self.process_line(line)
        return self.to_response()

    def to_response(self) -> UnifiedResponse | UnifiedError:
        """Assemble accumulated chunks into a UnifiedResponse.

        A stream that carried an error line yields that UnifiedError, and
        any partial text is discarded. Usage is not carried by unified
        chunks, so it is reported as zero.
        """
        if self.error is not None:
            return self.error
        return UnifiedResponse(
            id=self.id,
            created=self.created,
            model=self.model,
            provider=self.provider,
            choices=[
                Choice(
                    content="".join(self.text_parts),
                    finish_reason=self.finish_reason,
                )
            ],
            usage=Usage(),
        )
