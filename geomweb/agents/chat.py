"""Terminal chat with the GeoExpert assistant.

Each message is sent with the whole conversation so far and the answer is
printed as it streams in. Type `/clear` to start over and `/quit` to leave.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import typer
from rich.markup import escape

from geomweb import constants, opts
from geomweb.chat.models import Delta, StreamError
from geomweb.chat.session import ChatSession
from geomweb.cli import app, setup_logging
from geomweb.config import ChatClientConfig, SupabaseConfig
from geomweb.core.utils import console, print_command_line_args, print_error_message

if TYPE_CHECKING:
    from geomweb.chat.models import StreamEvent

logger = logging.getLogger(__name__)

PROMPT = "[bold cyan]Vous[/bold cyan] > "


def chat_client_config(
    endpoint_url: str | None,
    supabase_url: str | None,
    supabase_key: str | None,
    request_timeout: float | None,
) -> ChatClientConfig:
    """Resolve where to send the conversation."""
    if endpoint_url:
        return ChatClientConfig(
            endpoint_url=endpoint_url,
            api_key=supabase_key,
            request_timeout=request_timeout,
        )
    if supabase_url and supabase_key:
        project = SupabaseConfig(url=supabase_url, api_key=supabase_key)
        return ChatClientConfig(
            endpoint_url=project.chat_endpoint_url,
            api_key=project.api_key,
            request_timeout=request_timeout,
        )
    print_error_message(
        "No chat endpoint configured.",
        "Pass --endpoint-url, or --supabase-url and --supabase-key.",
    )
    raise typer.Exit(1)


def _print_event(event: StreamEvent) -> None:
    if isinstance(event, Delta):
        console.print(event.text, end="", markup=False, highlight=False)
    elif isinstance(event, StreamError):
        console.print(f"[bold red]{escape(event.message)}[/bold red]", end="")
    else:
        console.print()


async def _ask(session: ChatSession, text: str) -> None:
    console.print("[bold green]Assistant[/bold green] > ", end="")
    await session.send(text, on_event=_print_event)


async def _interactive(session: ChatSession) -> None:
    while True:
        try:
            text = await asyncio.to_thread(console.input, PROMPT)
        except (EOFError, KeyboardInterrupt):
            console.print()
            return
        command = text.strip().lower()
        if command in {"/quit", "/exit"}:
            return
        if command == "/clear":
            count = session.clear()
            console.print(f"[dim]{count} messages effaces.[/dim]")
            continue
        if not command:
            continue
        await _ask(session, text)


@app.command("chat")
def chat(
    message: str | None = typer.Option(
        None,
        "--message",
        "-M",
        help="Send a single message and exit instead of starting a conversation.",
        rich_help_panel="Chat Configuration",
    ),
    endpoint_url: str | None = opts.CHAT_ENDPOINT_URL,
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    request_timeout: float | None = opts.REQUEST_TIMEOUT,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
    print_args: bool = opts.PRINT_ARGS,
) -> None:
    """Chat with the assistant from the terminal."""
    if print_args:
        print_command_line_args(locals())
    setup_logging(log_level, log_file)

    cfg = chat_client_config(endpoint_url, supabase_url, supabase_key, request_timeout)
    logger.info("Chatting with %s", cfg.endpoint_url)
    session = ChatSession(
        stream_kwargs={
            "endpoint_url": cfg.endpoint_url,
            "api_key": cfg.api_key,
            "request_timeout": cfg.request_timeout,
        },
    )

    if message is not None:
        asyncio.run(_ask(session, message))
        reply = session.last_reply or ""
        if reply.startswith(f"{constants.CHAT_ERROR_PREFIX} "):
            raise typer.Exit(1)
        return

    console.print("[dim]Tapez /clear pour recommencer, /quit pour quitter.[/dim]")
    asyncio.run(_interactive(session))

