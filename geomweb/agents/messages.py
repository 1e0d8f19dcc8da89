"""Admin inbox and contact form commands."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import typer
from rich.markup import escape
from rich.table import Table

from geomweb import opts
from geomweb.agents._common import (
    admin_directory,
    fail,
    open_store,
    require_admin,
    supabase_config,
)
from geomweb.auth.session import SessionStore
from geomweb.cli import app, setup_logging
from geomweb.core.utils import console, print_error_message, print_output_panel
from geomweb.notifications.inbox import (
    ContactLinkError,
    load_inbox,
    mark_all_read,
    mark_read,
    submit_contact_message,
)
from geomweb.notifications.message import ContactSubmission
from geomweb.store import StoreError

if TYPE_CHECKING:
    from geomweb.notifications.inbox import InboxEntry


def _inbox_table(entries: list[InboxEntry]) -> Table:
    table = Table(title="Messages", show_lines=False)
    table.add_column("", width=1)
    table.add_column("Date", style="dim")
    table.add_column("Expediteur")
    table.add_column("Contact")
    table.add_column("Sujet")
    table.add_column("ID", style="dim", overflow="fold")
    for entry in entries:
        contact = " / ".join(value for value in (entry.sender_email, entry.sender_phone) if value)
        table.add_row(
            "" if entry.read else "[bold cyan]●[/bold cyan]",
            entry.created_at.astimezone().strftime("%d/%m/%Y %H:%M"),
            escape(entry.sender_name),
            escape(contact),
            escape(entry.subject),
            entry.id,
        )
    return table


@app.command("messages")
def messages(
    show: str | None = typer.Option(
        None,
        "--show",
        help="Print the full text of one message (by ID) and mark it as read.",
        rich_help_panel="Inbox",
    ),
    mark: list[str] = typer.Option(  # noqa: B008
        [],
        "--mark-read",
        help="Mark a message as read. Repeatable.",
        rich_help_panel="Inbox",
    ),
    all_read: bool = typer.Option(
        False,  # noqa: FBT003
        "--mark-all-read",
        help="Mark every unread message as read.",
        rich_help_panel="Inbox",
    ),
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    access_token: str | None = opts.SUPABASE_ACCESS_TOKEN,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """List the messages received through the contact form (admins only)."""
    setup_logging(log_level, log_file)
    cfg = supabase_config(supabase_url, supabase_key, access_token)

    async def _run() -> None:
        async with open_store(cfg) as store:
            await require_admin(store)
            for notification_id in mark:
                await mark_read(store, notification_id)
            if all_read:
                count = await mark_all_read(store)
                console.print(f"[green]{count} message(s) marque(s) comme lu(s).[/green]")

            entries = await load_inbox(store)
            if show is not None:
                entry = next((item for item in entries if item.id == show), None)
                if entry is None:
                    print_error_message(f"Message {show} introuvable.")
                    raise typer.Exit(1)
                if not entry.read:
                    await mark_read(store, entry.id)
                print_output_panel(
                    escape(entry.body),
                    title=escape(entry.subject or entry.title),
                    subtitle=escape(entry.sender_name),
                    style="",
                )
                return

        if not entries:
            console.print("[dim]Aucun message.[/dim]")
            return
        unread = sum(1 for entry in entries if not entry.read)
        console.print(_inbox_table(entries))
        console.print(f"[bold]{unread}[/bold] non lu(s) sur {len(entries)}.")

    try:
        asyncio.run(_run())
    except StoreError as exc:
        raise fail(exc) from exc


@app.command("contact")
def contact(
    name: str = typer.Option(..., "--name", "-n", help="Your name."),
    email: str = typer.Option(..., "--email", "-e", help="Your e-mail."),
    message: str = typer.Option(..., "--message", "-M", help="Your message."),
    phone: str = typer.Option("", "--phone", help="Your phone number."),
    subject: str = typer.Option("", "--subject", "-s", help="Subject of the request."),
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    admin_emails: str = opts.ADMIN_EMAILS,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Send a message to the cabinet, as the contact form does."""
    setup_logging(log_level, log_file)
    if not name.strip() or not email.strip() or not message.strip():
        print_error_message("Veuillez remplir tous les champs obligatoires.")
        raise typer.Exit(1)
    cfg = supabase_config(supabase_url, supabase_key)
    record = SessionStore().load()
    user = record if record and not record.is_admin else None
    submission = ContactSubmission(
        name=name,
        email=user.email if user else email,
        phone=phone,
        subject=subject,
        message=message,
    )

    async def _run() -> None:
        async with open_store(cfg) as store:
            primary = await admin_directory(store, admin_emails).primary_admin()
            await submit_contact_message(
                store,
                submission,
                user_id=user.id if user else None,
                admin_id=primary.id if primary else None,
            )

    try:
        asyncio.run(_run())
    except ContactLinkError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc
    except StoreError as exc:
        raise fail(exc) from exc
    console.print("[bold green]Message envoye. Nous vous repondrons rapidement.[/bold green]")
