"""Chat gateway server command."""

from __future__ import annotations

from geomweb import opts
from geomweb.cli import app, setup_logging
from geomweb.config import GatewayConfig
from geomweb.core.utils import console, print_command_line_args


@app.command("serve")
def serve(
    gateway_url: str = opts.GATEWAY_URL,
    gateway_api_key: str | None = opts.GATEWAY_API_KEY,
    model: str = opts.GATEWAY_MODEL,
    host: str = opts.SERVER_HOST,
    port: int = opts.SERVER_PORT,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
    print_args: bool = opts.PRINT_ARGS,
) -> None:
    """Start the chat gateway.

    `POST /chat` takes `{"messages": [...]}` and relays the upstream completion
    as an event stream. Without an upstream key it answers with canned replies.
    """
    if print_args:
        print_command_line_args(locals())
    setup_logging(log_level, log_file)

    import uvicorn  # noqa: PLC0415

    from geomweb.chat.api import create_app  # noqa: PLC0415

    gateway = GatewayConfig(url=gateway_url, api_key=gateway_api_key, model=model)

    console.print(f"[bold green]Starting chat gateway on {host}:{port}[/bold green]")
    console.print(f"  🤖 Upstream: [blue]{gateway.url}[/blue]")
    console.print(f"  🧠 Model: [blue]{gateway.model}[/blue]")
    if not gateway.api_key:
        console.print("  [yellow]No upstream API key, answering with canned replies[/yellow]")

    fastapi_app = create_app(gateway.url, gateway.api_key, gateway.model)
    uvicorn.run(fastapi_app, host=host, port=port, log_config=None)
