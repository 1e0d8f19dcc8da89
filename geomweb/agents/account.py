"""Account commands: sessions, password and admin profile settings."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.markup import escape
from rich.table import Table

from geomweb import opts
from geomweb.agents._common import (
    admin_directory,
    fail,
    open_store,
    parse_assignments,
    require_admin,
    supabase_config,
)
from geomweb.auth.credentials import AuthError, change_password, sign_in, sign_up
from geomweb.auth.session import SessionStore, validate_password_stamp
from geomweb.cli import app, setup_logging
from geomweb.core.utils import console, print_error_message
from geomweb.profiles.directory import ADMINS_TABLE
from geomweb.profiles.models import AdminProfile
from geomweb.profiles.settings import AdminSettings, SettingsError, update_admin_settings
from geomweb.store import StoreError, select_one

logger = logging.getLogger(__name__)

EMAIL = typer.Option(..., "--email", "-e", prompt=True, help="Account e-mail.")
PASSWORD = typer.Option(
    ...,
    "--password",
    "-p",
    prompt=True,
    hide_input=True,
    envvar="GEOMWEB_PASSWORD",
    help="Account password.",
)


@app.command("login")
def login(
    email: str = EMAIL,
    password: str = PASSWORD,
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Sign in as an admin or a user and remember the session."""
    setup_logging(log_level, log_file)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _run() -> None:
        async with open_store(cfg) as store:
            record = await sign_in(store, email, password)
        SessionStore().save(record)
        console.print(f"[bold green]Connecte en tant que {record.full_name} ({record.role})[/bold green]")

    try:
        asyncio.run(_run())
    except AuthError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc
    except StoreError as exc:
        raise fail(exc) from exc


@app.command("signup")
def signup(
    name: str = typer.Option(..., "--name", "-n", prompt=True, help="Full name."),
    email: str = EMAIL,
    password: str = PASSWORD,
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    admin_emails: str = opts.ADMIN_EMAILS,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Create a user account linked to the cabinet and sign in."""
    setup_logging(log_level, log_file)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _run() -> None:
        async with open_store(cfg) as store:
            directory = admin_directory(store, admin_emails)
            record = await sign_up(store, directory, name=name, email=email, password=password)
        SessionStore().save(record)
        console.print(f"[bold green]Compte cree pour {record.email}[/bold green]")

    try:
        asyncio.run(_run())
    except AuthError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc
    except StoreError as exc:
        raise fail(exc) from exc


@app.command("logout")
def logout() -> None:
    """Forget the current session."""
    SessionStore().clear()
    console.print("[bold]Deconnecte.[/bold]")


@app.command("whoami")
def whoami(
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Show the current session after checking it is still valid."""
    setup_logging(log_level, log_file)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _run() -> None:
        async with open_store(cfg) as store:
            record = await validate_password_stamp(SessionStore(), store)
        if record is None:
            console.print("[yellow]Aucune session active.[/yellow]")
            raise typer.Exit(1)
        console.print(f"{record.full_name} <{record.email}> ({record.role})")

    asyncio.run(_run())


@app.command("password")
def password_cmd(
    new_password: str = typer.Option(
        ...,
        "--new-password",
        prompt="Nouveau mot de passe",
        hide_input=True,
        help="The new password.",
    ),
    confirm: str = typer.Option(
        ...,
        "--confirm",
        prompt="Confirmation",
        hide_input=True,
        help="The new password again.",
    ),
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Change the password of the signed-in account."""
    setup_logging(log_level, log_file)
    cfg = supabase_config(supabase_url, supabase_key)
    sessions = SessionStore()

    async def _run() -> None:
        async with open_store(cfg) as store:
            record = await validate_password_stamp(sessions, store)
            if record is None:
                print_error_message("Aucune session active.", "Connectez-vous avec `geomweb login`.")
                raise typer.Exit(1)
            record = await change_password(store, record, new_password, confirm)
        sessions.save(record)
        console.print("[bold green]Votre mot de passe a ete mis a jour.[/bold green]")

    try:
        asyncio.run(_run())
    except AuthError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc
    except StoreError as exc:
        raise fail(exc) from exc


@app.command("profile")
def profile(
    assignments: list[str] = typer.Option(  # noqa: B008
        [],
        "--set",
        "-s",
        help="Setting as `key=value`, e.g. `tagline=Cabinet Haddad`. Repeatable.",
    ),
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    admin_emails: str = opts.ADMIN_EMAILS,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Show or change the surveyor and cabinet details of the signed-in admin."""
    setup_logging(log_level, log_file)
    changes = parse_assignments(assignments)
    cfg = supabase_config(supabase_url, supabase_key)
    sessions = SessionStore()

    async def _run() -> None:
        async with open_store(cfg) as store:
            record = await require_admin(store)
            if changes:
                directory = admin_directory(store, admin_emails)
                admin, record = await update_admin_settings(
                    store,
                    record,
                    changes,
                    directory=directory,
                )
                sessions.save(record)
                console.print("[bold green]Parametres mis a jour.[/bold green]")
            else:
                row = await select_one(store, ADMINS_TABLE, eq={"id": record.id})
                if row is None:
                    print_error_message("Compte introuvable.")
                    raise typer.Exit(1)
                admin = AdminProfile.model_validate(row)
        console.print(_settings_table(admin))

    try:
        asyncio.run(_run())
    except SettingsError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc
    except StoreError as exc:
        raise fail(exc) from exc


def _settings_table(admin: AdminProfile) -> Table:
    table = Table(title="Profil", show_header=False)
    table.add_column("Champ", style="dim")
    table.add_column("Valeur")
    for field in AdminSettings.model_fields:
        value = getattr(admin, field, None)
        table.add_row(field, escape("" if value is None else str(value)))
    return table
