"""Unified message list to provider message translation.

System messages are pulled out of the positional conversation and folded
into a single system text; the remaining messages are mapped to the
provider's content-block representation. Image parts are decoded from
base64 data URIs, and parts that cannot be decoded are dropped rather than
failing the request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from unigate.models import (
    DataURI,
    ImageURLPart,
    Message,
    TextPart,
    UnsupportedPart,
)

logger = logging.getLogger(__name__)


def parse_data_uri(url: str) -> DataURI | None:
    """Decode a ``data:<media_type>;base64,<payload>`` URI.

    Args:
        url: The image URL from a unified ``image_url`` part.

    Returns:
        The decoded DataURI, or None if the URI is malformed: not exactly
        two ``;`` segments, a header without ``data:`` or with more than one
        ``:``, or an encoding segment without exactly one ``,`` and a
        non-empty payload.
    """
    segments = url.split(";")
    if len(segments) != 2:
        return None
    header, encoded = segments

    if not header.startswith("data:"):
        return None
    header_parts = header.split(":")
    if len(header_parts) != 2 or not header_parts[1]:
        return None

    encoded_parts = encoded.split(",")
    if len(encoded_parts) != 2 or not encoded_parts[1]:
        return None

    return DataURI(media_type=header_parts[1], data=encoded_parts[1])


def _map_part(part: Any) -> dict[str, Any] | None:
    if isinstance(part, TextPart):
        return {"type": "text", "text": part.text}
    if isinstance(part, ImageURLPart):
        uri = parse_data_uri(part.url)
        if uri is None:
            logger.debug("Dropping image part with malformed data URI")
            return None
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": uri.media_type,
                "data": uri.data,
            },
        }
    if isinstance(part, UnsupportedPart):
        logger.debug("Dropping unsupported content part %r", part.type)
    return None


def transform_message(message: Message) -> dict[str, Any]:
    """Map one non-system message to its provider representation."""
    content = message.content
    if not isinstance(content, list) or not content:
        return {"role": message.role, "content": content}

    blocks: list[dict[str, Any]] = []
    for part in content:
        block = _map_part(part)
        if block is not None:
            blocks.append(block)
    return {"role": message.role, "content": blocks}


def transform_messages(messages: Iterable[Any]) -> list[dict[str, Any]]:
    """Map a unified message list to provider messages, minus system turns.

    Args:
        messages: Unified messages as dicts or :class:`Message` objects.

    Returns:
        Provider messages in input order with system messages removed.
    """
    result: list[dict[str, Any]] = []
    for raw in messages:
        message = Message.from_dict(raw)
        if message.is_system:
            continue
        result.append(transform_message(message))
    return result


def extract_system_text(messages: Iterable[Any]) -> str:
    """Return the text of the last system message, or ``""`` if none.

    String content always counts. For part-list content only a non-empty
    leading text part counts; otherwise an earlier system text is kept.
    """
    system_text = ""
    for raw in messages:
        message = Message.from_dict(raw)
        if not message.is_system:
            continue
        content = message.content
        if isinstance(content, str):
            system_text = content
        elif content and isinstance(content[0], TextPart) and content[0].text:
            system_text = content[0].text
    return system_text
