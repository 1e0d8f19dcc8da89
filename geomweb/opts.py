"""Shared CLI options for geomweb commands."""

from __future__ import annotations

import typer

from geomweb import constants


def _conf_callback(ctx: typer.Context, value: str | None) -> str | None:
    """Load config file defaults before the other options are resolved."""
    from geomweb.cli import set_config_defaults  # noqa: PLC0415

    set_config_defaults(ctx, value)
    return value


# --- Database Options ---
SUPABASE_URL = typer.Option(
    None,
    "--supabase-url",
    envvar="SUPABASE_URL",
    help="Base URL of the hosted database project.",
    rich_help_panel="Database Configuration",
)
SUPABASE_KEY = typer.Option(
    None,
    "--supabase-key",
    envvar="SUPABASE_PUBLISHABLE_KEY",
    help="Publishable (anon) API key of the project.",
    rich_help_panel="Database Configuration",
)
SUPABASE_ACCESS_TOKEN = typer.Option(
    None,
    "--supabase-access-token",
    envvar="SUPABASE_ACCESS_TOKEN",
    help="Bearer token used instead of the API key for row-level security.",
    rich_help_panel="Database Configuration",
)
ADMIN_EMAILS = typer.Option(
    "",
    "--admin-emails",
    envvar="ADMIN_EMAILS",
    help="Comma-separated e-mails always treated as administrators.",
    rich_help_panel="Database Configuration",
)

# --- Chat Options ---
CHAT_ENDPOINT_URL = typer.Option(
    None,
    "--endpoint-url",
    envvar="GEOMWEB_CHAT_URL",
    help="Chat endpoint URL. Defaults to the project's chat function.",
    rich_help_panel="Chat Configuration",
)
REQUEST_TIMEOUT = typer.Option(
    None,
    "--request-timeout",
    help="Seconds to wait for the assistant. Waits indefinitely by default.",
    rich_help_panel="Chat Configuration",
)

# --- Gateway Options ---
GATEWAY_URL = typer.Option(
    constants.DEFAULT_GATEWAY_URL,
    "--gateway-url",
    help="Upstream chat/completions URL.",
    rich_help_panel="Gateway Configuration",
)
GATEWAY_API_KEY = typer.Option(
    None,
    "--gateway-api-key",
    envvar="LOVABLE_API_KEY",
    help="Upstream API key. Without it the gateway answers with canned replies.",
    rich_help_panel="Gateway Configuration",
)
GATEWAY_MODEL = typer.Option(
    constants.DEFAULT_GATEWAY_MODEL,
    "--model",
    "-m",
    envvar="LOVABLE_MODEL",
    help="Model requested from the upstream service.",
    rich_help_panel="Gateway Configuration",
)

# --- Server Options ---
SERVER_HOST = typer.Option(
    "0.0.0.0",  # noqa: S104
    "--host",
    help="Host to bind to",
    rich_help_panel="Server Configuration",
)
SERVER_PORT = typer.Option(
    8000,
    "--port",
    help="Port to bind to",
    rich_help_panel="Server Configuration",
)

# --- General Options ---
LOG_LEVEL = typer.Option(
    "WARNING",
    "--log-level",
    help="Set the log level (e.g., DEBUG, INFO, WARNING).",
    rich_help_panel="General Options",
)
LOG_FILE = typer.Option(
    None,
    "--log-file",
    help="Path to a file to write logs to.",
    rich_help_panel="General Options",
)
CONFIG_FILE = typer.Option(
    None,
    "--config",
    callback=_conf_callback,
    is_eager=True,
    help="Path to a TOML configuration file.",
    rich_help_panel="General Options",
)
PRINT_ARGS = typer.Option(
    False,  # noqa: FBT003
    "--print-args",
    help="Print the command line arguments, including variables taken from the configuration file.",
    rich_help_panel="General Options",
)
