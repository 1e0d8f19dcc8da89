"""Streaming client for the chat assistant endpoint.

The endpoint may answer with a single JSON object, an OpenAI-style SSE stream,
or an error payload. Whatever the shape, callers receive zero or more
:class:`Delta` events, at most one :class:`StreamError`, and exactly one final
:class:`Done`. Nothing is raised to the caller.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from geomweb import constants
from geomweb.chat.models import Delta, Done, StreamError
from geomweb.core.sse import (
    DONE_MARKER,
    error_from_chunk,
    extract_content_from_chunk,
    parse_data_line,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Callable, Sequence

    from geomweb.chat.models import ChatTurn, StreamEvent

logger = logging.getLogger(__name__)

_NO_BODY_STATUSES = frozenset({204, 205})
# Besides malformed text, valid JSON can exceed the int-digit or nesting limits.
_JSON_ERRORS = (ValueError, RecursionError)


async def consume_event_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Turn raw SSE body chunks into stream events.

    A ``data:`` line that does not parse as JSON is pushed back in front of the
    buffer and the current pass stops until more bytes arrive; this is how a
    JSON object split across chunk boundaries is tolerated. A line that is
    permanently malformed therefore holds back every line after it.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    produced = False
    finished = False

    async for chunk in chunks:
        buffer += decoder.decode(chunk)
        while "\n" in buffer:
            line, buffer = buffer.split("\n", 1)
            payload = parse_data_line(line)
            if payload is None:
                continue
            if payload == DONE_MARKER:
                finished = True
                break
            try:
                parsed = json.loads(payload)
            except _JSON_ERRORS:
                buffer = line + "\n" + buffer
                break
            text = extract_content_from_chunk(parsed)
            if text:
                produced = True
                yield Delta(text)
            error = error_from_chunk(parsed)
            if error is not None:
                logger.warning("Assistant stream reported an error: %s", error)
                yield StreamError(error)
                yield Done()
                return
        if finished:
            break

    buffer += decoder.decode(b"", final=True)
    tail = buffer.strip()
    if not produced and tail:
        try:
            text = extract_content_from_chunk(json.loads(tail))
        except _JSON_ERRORS:
            logger.debug("Discarding unparsable stream tail: %r", tail[:200])
        else:
            if text:
                produced = True
                yield Delta(text)

    if not produced:
        yield StreamError(constants.ERROR_NO_USABLE_RESPONSE)
    yield Done()


def _upstream_error_message(body: bytes) -> str:
    """Return the error text embedded in a non-2xx body, or the generic one."""
    try:
        payload = json.loads(body.decode("utf-8", errors="replace"))
    except _JSON_ERRORS:
        return constants.ERROR_GENERIC
    if isinstance(payload, dict):
        for field in ("error", "message"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    return constants.ERROR_GENERIC


def _json_payload_events(body: bytes) -> list[StreamEvent]:
    try:
        payload: Any = json.loads(body.decode("utf-8", errors="replace"))
    except _JSON_ERRORS:
        return [StreamError(constants.ERROR_INVALID_RESPONSE), Done()]
    text = extract_content_from_chunk(payload)
    if text:
        return [Delta(text), Done()]
    return [StreamError(error_from_chunk(payload) or constants.ERROR_INVALID_RESPONSE), Done()]


def build_headers(api_key: str | None) -> dict[str, str]:
    """Return the request headers for the chat endpoint."""
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


async def _request_events(
    client: httpx.AsyncClient,
    turns: Sequence[ChatTurn],
    endpoint_url: str,
    api_key: str | None,
) -> AsyncIterator[StreamEvent]:
    payload = {"messages": [turn.model_dump() for turn in turns]}
    async with client.stream(
        "POST",
        endpoint_url,
        json=payload,
        headers=build_headers(api_key),
    ) as response:
        if not response.is_success:
            body = await response.aread()
            logger.warning("Chat endpoint returned HTTP %s", response.status_code)
            yield StreamError(_upstream_error_message(body))
            yield Done()
            return

        if "application/json" in response.headers.get("content-type", ""):
            for event in _json_payload_events(await response.aread()):
                yield event
            return

        if response.status_code in _NO_BODY_STATUSES:
            yield StreamError(constants.ERROR_NO_BODY)
            yield Done()
            return

        async for event in consume_event_stream(response.aiter_bytes()):
            yield event


async def stream_chat(
    turns: Sequence[ChatTurn],
    *,
    endpoint_url: str,
    api_key: str | None = None,
    client: httpx.AsyncClient | None = None,
    request_timeout: float | None = None,
) -> AsyncIterator[StreamEvent]:
    """Send the conversation to the chat endpoint and stream the answer.

    Args:
        turns: Conversation so far, forwarded as-is.
        endpoint_url: Full URL of the chat endpoint.
        api_key: Publishable key, sent as ``apikey`` and bearer token.
        client: Optional client to reuse (tests inject a mock transport here).
        request_timeout: Timeout in seconds. ``None`` waits indefinitely.

    Yields:
        Stream events ending with exactly one :class:`Done`.

    """
    done_sent = False
    error_sent = False
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=request_timeout)
    try:
        async for event in _request_events(http, turns, endpoint_url, api_key):
            if isinstance(event, StreamError):
                error_sent = True
            elif isinstance(event, Done):
                done_sent = True
            yield event
    except (httpx.HTTPError, httpx.InvalidURL):
        logger.exception("Could not reach the chat endpoint at %s", endpoint_url)
        if not done_sent:
            if not error_sent:
                yield StreamError(constants.ERROR_CONTACT_FAILED)
            yield Done()
    finally:
        if owns_client:
            await http.aclose()


async def stream_chat_with_callbacks(
    turns: Sequence[ChatTurn],
    on_delta: Callable[[str], None],
    on_done: Callable[[], None],
    on_error: Callable[[str], None],
    **kwargs: Any,
) -> None:
    """Drive ``on_delta``/``on_error``/``on_done`` from :func:`stream_chat`."""
    async for event in stream_chat(turns, **kwargs):
        if isinstance(event, Delta):
            on_delta(event.text)
        elif isinstance(event, StreamError):
            on_error(event.message)
        else:
            on_done()
