"""FastAPI chat gateway in front of an OpenAI-compatible completion service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from geomweb import constants
from geomweb.chat.prompt import SYSTEM_PROMPT, build_fallback_reply

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_UPSTREAM_ERRORS = {
    429: constants.GATEWAY_ERROR_RATE_LIMITED,
    402: constants.GATEWAY_ERROR_PAYMENT,
}


def filter_messages(body: Any) -> list[dict[str, str]]:
    """Keep the messages whose ``role`` and ``content`` are both strings."""
    raw = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(raw, list):
        return []
    return [
        {"role": item["role"], "content": item["content"]}
        for item in raw
        if isinstance(item, dict)
        and isinstance(item.get("role"), str)
        and isinstance(item.get("content"), str)
    ]


def last_user_message(messages: list[dict[str, str]]) -> str:
    """Return the content of the most recent user message, or ``""``."""
    for message in reversed(messages):
        if message["role"] == "user":
            return message["content"]
    return ""


def fallback_payload(messages: list[dict[str, str]]) -> dict[str, Any]:
    """Build an OpenAI-shaped completion carrying the canned reply."""
    reply = build_fallback_reply(last_user_message(messages))
    return {"choices": [{"message": {"role": "assistant", "content": reply}}]}


def create_app(
    gateway_url: str = constants.DEFAULT_GATEWAY_URL,
    gateway_api_key: str | None = None,
    model: str = constants.DEFAULT_GATEWAY_MODEL,
    system_prompt: str = SYSTEM_PROMPT,
    *,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> FastAPI:
    """Create the chat gateway app.

    Args:
        gateway_url: Full URL of the upstream ``chat/completions`` endpoint.
        gateway_api_key: Upstream key. Without one, ``/chat`` answers with
            canned replies instead of calling upstream.
        model: Model name sent upstream.
        system_prompt: Prepended to every conversation.
        client_factory: Builds the upstream HTTP client for each request.

    """
    app = FastAPI(title="GeoExpert Chat Gateway")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.gateway_url = gateway_url
    app.state.gateway_api_key = gateway_api_key
    app.state.model = model
    app.state.system_prompt = system_prompt
    app.state.client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=120.0))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {
            "status": "ok",
            "model": app.state.model,
            "mode": "gateway" if app.state.gateway_api_key else "fallback",
        }

    @app.post("/chat")
    async def chat(request: Request) -> Any:
        try:
            try:
                body = await request.json()
            except ValueError:
                body = {}
            messages = filter_messages(body)

            if not app.state.gateway_api_key:
                return JSONResponse(fallback_payload(messages))

            return await _relay_upstream(messages)
        except Exception as exc:
            logger.exception("Chat request failed")
            return JSONResponse({"error": str(exc) or "Unknown error"}, status_code=500)

    async def _relay_upstream(messages: list[dict[str, str]]) -> Any:
        client: httpx.AsyncClient = app.state.client_factory()
        upstream_request = client.build_request(
            "POST",
            app.state.gateway_url,
            json={
                "model": app.state.model,
                "messages": [{"role": "system", "content": app.state.system_prompt}, *messages],
                "stream": True,
            },
            headers={"Authorization": f"Bearer {app.state.gateway_api_key}"},
        )
        try:
            response = await client.send(upstream_request, stream=True)
        except BaseException:
            await client.aclose()
            raise

        if not response.is_success:
            details = await response.aread()
            await response.aclose()
            await client.aclose()
            logger.error(
                "AI gateway error %s: %s",
                response.status_code,
                details.decode("utf-8", errors="replace"),
            )
            status = response.status_code if response.status_code in _UPSTREAM_ERRORS else 500
            message = _UPSTREAM_ERRORS.get(response.status_code, constants.GATEWAY_ERROR_UPSTREAM)
            return JSONResponse({"error": message}, status_code=status)

        async def close_upstream() -> None:
            await response.aclose()
            await client.aclose()

        return StreamingResponse(
            response.aiter_raw(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
            background=BackgroundTask(close_upstream),
        )

    return app
