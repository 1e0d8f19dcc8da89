"""Console helpers shared by the CLI commands."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel

console = Console()
err_console = Console(stderr=True)


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Print an error message with an optional hint."""
    text = f"[bold red]❌ {message}[/bold red]"
    if suggestion:
        text += f"\n[yellow]{suggestion}[/yellow]"
    err_console.print(Panel(text, title="Erreur", border_style="red"))


def print_output_panel(
    output: str,
    title: str = "Output",
    subtitle: str = "",
    style: str = "bold",
) -> None:
    """Print text in a titled panel."""
    console.print(
        Panel(output, title=title, subtitle=subtitle, border_style="cyan", style=style),
    )


def print_command_line_args(args: dict[str, Any]) -> None:
    """Print the resolved command line arguments, hiding secrets."""
    for key, value in sorted(args.items()):
        shown = "***" if value and ("key" in key or "password" in key) else value
        console.print(f"  [dim]{key}[/dim] = {shown!r}")
