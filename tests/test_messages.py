"""Tests for unigate.messages - multimodal message translation."""

from __future__ import annotations

import pytest

from unigate.messages import extract_system_text, parse_data_uri, transform_messages
from unigate.models import DataURI, ImageURLPart, Message, TextPart


def _image(url: str) -> dict:
    return {"type": "image_url", "image_url": {"url": url}}


# ---------------------------------------------------------------------------
# Data URIs
# ---------------------------------------------------------------------------


class TestParseDataURI:
    def test_well_formed(self) -> None:
        assert parse_data_uri("data:image/png;base64,Zm9v") == DataURI(
            media_type="image/png", data="Zm9v"
        )

    @pytest.mark.parametrize(
        "url",
        [
            "data:image/png,Zm9v",  # no ';'
            "data:image/png;charset=x;base64,Zm9v",  # three segments
            "image/png;base64,Zm9v",  # no data: prefix
            "data:image:png;base64,Zm9v",  # two ':' in header
            "data:image/png;base64,",  # empty payload
            "data:image/png;base64",  # no ','
            "data:;base64,Zm9v",  # empty media type
            "https://example.com/cat.png",
        ],
    )
    def test_malformed_returns_none(self, url: str) -> None:
        assert parse_data_uri(url) is None


# ---------------------------------------------------------------------------
# Message list
# ---------------------------------------------------------------------------


class TestTransformMessages:
    def test_string_content_passes_through(self) -> None:
        result = transform_messages([{"role": "user", "content": "hi"}])
        assert result == [{"role": "user", "content": "hi"}]

    def test_system_messages_removed_order_preserved(self) -> None:
        messages = [
            {"role": "user", "content": "one"},
            {"role": "system", "content": "sys"},
            {"role": "assistant", "content": "two"},
            {"role": "user", "content": "three"},
        ]
        result = transform_messages(messages)
        assert [m["content"] for m in result] == ["one", "two", "three"]
        assert [m["role"] for m in result] == ["user", "assistant", "user"]

    def test_text_and_image_parts(self) -> None:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "hi"},
                    _image("data:image/png;base64,Zm9v"),
                ],
            }
        ]
        [message] = transform_messages(messages)
        assert message["role"] == "user"
        assert message["content"] == [
            {"type": "text", "text": "hi"},
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/png",
                    "data": "Zm9v",
                },
            },
        ]

    def test_malformed_image_is_dropped_silently(self) -> None:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "look"},
                    _image("data:image/pngbase64,Zm9v"),
                    _image("data:image/jpeg;base64,YmFy"),
                ],
            }
        ]
        [message] = transform_messages(messages)
        assert len(message["content"]) == 2
        assert message["content"][0] == {"type": "text", "text": "look"}
        assert message["content"][1]["source"]["media_type"] == "image/jpeg"

    def test_all_parts_dropped_leaves_empty_content(self) -> None:
        messages = [{"role": "user", "content": [_image("not-a-data-uri")]}]
        assert transform_messages(messages) == [{"role": "user", "content": []}]

    def test_unknown_part_types_are_dropped(self) -> None:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "input_audio", "input_audio": {"data": "..."}},
                    {"type": "text", "text": "transcribe"},
                ],
            }
        ]
        [message] = transform_messages(messages)
        assert message["content"] == [{"type": "text", "text": "transcribe"}]

    def test_empty_part_list_passes_through(self) -> None:
        assert transform_messages([{"role": "user", "content": []}]) == [
            {"role": "user", "content": []}
        ]

    def test_accepts_message_objects(self) -> None:
        messages = [
            Message.system("sys"),
            Message(role="user", content=[TextPart(text="a"), ImageURLPart(url="bad")]),
        ]
        assert transform_messages(messages) == [
            {"role": "user", "content": [{"type": "text", "text": "a"}]}
        ]

    def test_image_url_as_plain_string(self) -> None:
        messages = [
            {
                "role": "user",
                "content": [{"type": "image_url", "image_url": "data:image/gif;base64,R0lG"}],
            }
        ]
        [message] = transform_messages(messages)
        assert message["content"][0]["source"]["media_type"] == "image/gif"


# ---------------------------------------------------------------------------
# System text
# ---------------------------------------------------------------------------


class TestExtractSystemText:
    def test_no_system_message(self) -> None:
        assert extract_system_text([{"role": "user", "content": "hi"}]) == ""

    def test_last_system_message_wins(self) -> None:
        messages = [
            {"role": "system", "content": "A"},
            {"role": "user", "content": "hi"},
            {"role": "system", "content": "B"},
        ]
        assert extract_system_text(messages) == "B"

    def test_part_list_uses_first_text_part(self) -> None:
        messages = [
            {
                "role": "system",
                "content": [
                    {"type": "text", "text": "first"},
                    {"type": "text", "text": "second"},
                ],
            }
        ]
        assert extract_system_text(messages) == "first"

    def test_part_list_without_leading_text_keeps_previous(self) -> None:
        messages = [
            {"role": "system", "content": "A"},
            {"role": "system", "content": [_image("data:image/png;base64,Zm9v")]},
        ]
        assert extract_system_text(messages) == "A"

    def test_empty_string_system_overrides(self) -> None:
        messages = [
            {"role": "system", "content": "A"},
            {"role": "system", "content": ""},
        ]
        assert extract_system_text(messages) == ""
