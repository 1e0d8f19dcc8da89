"""Tests for SSE line parsing and chunk text extraction."""

from __future__ import annotations

import pytest

from geomweb.core.sse import error_from_chunk, extract_content_from_chunk, parse_data_line


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ('data: {"a": 1}', '{"a": 1}'),
        ('data: {"a": 1}\r', '{"a": 1}'),
        ("data:   [DONE]  ", "[DONE]"),
        (": keep-alive", None),
        ("", None),
        ("   ", None),
        ("event: message", None),
        ("data:{}", None),
    ],
)
def test_parse_data_line(line: str, expected: str | None) -> None:
    """Only ``data: `` lines carry a payload."""
    assert parse_data_line(line) == expected


def test_delta_content_wins_over_everything() -> None:
    """The streaming delta is the first extractor tried."""
    payload = {
        "choices": [{"delta": {"content": "delta"}, "message": {"content": "message"}}],
        "message": "top",
        "response": "response",
    }
    assert extract_content_from_chunk(payload) == "delta"


def test_message_content_string() -> None:
    """A full completion is read from ``choices[0].message.content``."""
    assert extract_content_from_chunk({"choices": [{"message": {"content": "Bonjour"}}]}) == "Bonjour"


def test_message_content_parts_are_concatenated() -> None:
    """Content parts without a string ``text`` are skipped."""
    payload = {
        "choices": [
            {
                "message": {
                    "content": [{"text": "Bon"}, {"type": "image"}, {"text": 3}, {"text": "jour"}],
                },
            },
        ],
    }
    assert extract_content_from_chunk(payload) == "Bonjour"


def test_empty_delta_falls_through_to_top_level() -> None:
    """An empty result does not stop the search."""
    payload = {"choices": [{"delta": {"content": ""}}], "message": "from top"}
    assert extract_content_from_chunk(payload) == "from top"


def test_response_field_is_last_resort() -> None:
    """``response`` is used when nothing else carries text."""
    assert extract_content_from_chunk({"response": "ok", "message": 42}) == "ok"


@pytest.mark.parametrize("payload", [None, "text", 3, ["a"], {}, {"choices": []}, {"choices": ["x"]}])
def test_no_text(payload: object) -> None:
    """Payloads without text give an empty string."""
    assert extract_content_from_chunk(payload) == ""


def test_error_from_chunk() -> None:
    """Only a string ``error`` counts as an embedded error."""
    assert error_from_chunk({"error": "boom"}) == "boom"
    assert error_from_chunk({"error": {"message": "boom"}}) is None
    assert error_from_chunk("error") is None
