"""Line parsing and text extraction for OpenAI-style Server-Sent Events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"


def parse_data_line(line: str) -> str | None:
    """Return the trimmed payload of a ``data: `` line.

    Comments (``:``), blank lines and any other field are skipped and give
    ``None``. One trailing carriage return is dropped first.
    """
    if line.endswith("\r"):
        line = line[:-1]
    if line.startswith(":") or not line.strip() or not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX) :].strip()


def _first_choice(payload: dict[str, Any]) -> dict[str, Any] | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    return first if isinstance(first, dict) else None


def _choice_field(payload: dict[str, Any], field: str) -> Any:
    choice = _first_choice(payload)
    if choice is None:
        return None
    inner = choice.get(field)
    return inner.get("content") if isinstance(inner, dict) else None


def _delta_content(payload: dict[str, Any]) -> str | None:
    content = _choice_field(payload, "delta")
    return content if isinstance(content, str) else None


def _message_content(payload: dict[str, Any]) -> str | None:
    content = _choice_field(payload, "message")
    return content if isinstance(content, str) else None


def _message_content_parts(payload: dict[str, Any]) -> str | None:
    content = _choice_field(payload, "message")
    if not isinstance(content, list):
        return None
    return "".join(
        part["text"]
        for part in content
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


def _top_level(field: str) -> Callable[[dict[str, Any]], str | None]:
    def extract(payload: dict[str, Any]) -> str | None:
        value = payload.get(field)
        return value if isinstance(value, str) else None

    extract.__name__ = f"_top_level_{field}"
    return extract


EXTRACTORS: tuple[Callable[[dict[str, Any]], str | None], ...] = (
    _delta_content,
    _message_content,
    _message_content_parts,
    _top_level("message"),
    _top_level("response"),
)


def extract_content_from_chunk(payload: Any) -> str:
    """Return the assistant text carried by a parsed JSON payload.

    The extractors are tried in order and the first non-empty result wins.
    Anything that is not a JSON object yields an empty string.
    """
    if not isinstance(payload, dict):
        return ""
    for extractor in EXTRACTORS:
        text = extractor(payload)
        if text:
            return text
    return ""


def error_from_chunk(payload: Any) -> str | None:
    """Return the ``error`` string of a parsed payload, if any."""
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return None
