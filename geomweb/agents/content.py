"""Admin commands editing the team, services and completed projects shown on the site."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import typer
from rich.markup import escape
from rich.table import Table

from geomweb import opts
from geomweb.agents._common import (
    fail,
    open_store,
    parse_assignments,
    require_admin,
    supabase_config,
)
from geomweb.cli import app, setup_logging
from geomweb.content.manage import (
    content_kind,
    create_item,
    delete_item,
    list_items,
    update_item,
)
from geomweb.content.models import CONTENT_KINDS, ContentError
from geomweb.core.utils import console, print_error_message
from geomweb.store import StoreError

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from geomweb.content.models import ContentKind
    from geomweb.store import Row

content_app = typer.Typer(
    name="content",
    help=f"""Edit the content shown on the public site.

**Kinds:** {", ".join(f"`{name}`" for name in CONTENT_KINDS)}

**Examples:**

```bash
geomweb content list services
geomweb content add equipe --set prenom=Amel --set name=Haddad --set role=Topographe
geomweb content update services 12 --set active=false
geomweb content delete realisations 7
```
""",
    rich_markup_mode="markdown",
    no_args_is_help=True,
)
app.add_typer(content_app, name="content")

KIND = typer.Argument(..., help=f"Kind of content: {', '.join(CONTENT_KINDS)}.")
ITEM_ID = typer.Argument(..., help="ID of the row.")
SET = typer.Option(
    [],
    "--set",
    "-s",
    help="Field value as `key=value`. Repeatable.",
)


def _rows_table(kind: ContentKind, rows: list[Row]) -> Table:
    table = Table(title=kind.label + "s")
    table.add_column("ID", style="dim", overflow="fold")
    for column in kind.columns:
        table.add_column(column)
    for row in rows:
        cells = ["" if row.get(column) is None else str(row.get(column)) for column in kind.columns]
        table.add_row(str(row.get("id", "")), *(escape(cell) for cell in cells))
    return table


def _run(coro: Coroutine[Any, Any, None]) -> None:
    try:
        asyncio.run(coro)
    except ContentError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc
    except StoreError as exc:
        raise fail(exc) from exc


def _kind(name: str) -> ContentKind:
    try:
        return content_kind(name)
    except ContentError as exc:
        print_error_message(str(exc))
        raise typer.Exit(1) from exc


@content_app.command("list")
def list_cmd(
    kind_name: str = KIND,
    public: bool = typer.Option(
        False,  # noqa: FBT003
        "--public",
        help="List what visitors see (active rows of every admin) without signing in.",
    ),
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """List your rows of one kind, in display order."""
    setup_logging(log_level, log_file)
    kind = _kind(kind_name)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _list() -> None:
        async with open_store(cfg) as store:
            if public:
                rows = await list_items(store, kind, active_only=True)
            else:
                record = await require_admin(store)
                rows = await list_items(store, kind, admin_id=record.id)
        if not rows:
            console.print("[dim]Aucun element.[/dim]")
            return
        console.print(_rows_table(kind, rows))

    _run(_list())


@content_app.command("add")
def add_cmd(
    kind_name: str = KIND,
    assignments: list[str] = SET,
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Add a row owned by the signed-in admin."""
    setup_logging(log_level, log_file)
    kind = _kind(kind_name)
    values = parse_assignments(assignments)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _add() -> None:
        async with open_store(cfg) as store:
            record = await require_admin(store)
            row = await create_item(store, kind, record.id, values)
        console.print(f"[bold green]{kind.label} ajoute(e) (ID {row.get('id')}).[/bold green]")

    _run(_add())


@content_app.command("update")
def update_cmd(
    kind_name: str = KIND,
    item_id: str = ITEM_ID,
    assignments: list[str] = SET,
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Change fields of one of your rows."""
    setup_logging(log_level, log_file)
    kind = _kind(kind_name)
    changes = parse_assignments(assignments)
    if not changes:
        print_error_message("Rien a modifier.", "Passez au moins un `--set key=value`.")
        raise typer.Exit(1)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _update() -> None:
        async with open_store(cfg) as store:
            record = await require_admin(store)
            await update_item(store, kind, record.id, item_id, changes)
        console.print("[bold green]Les changements ont ete enregistres.[/bold green]")

    _run(_update())


@content_app.command("delete")
def delete_cmd(
    kind_name: str = KIND,
    item_id: str = ITEM_ID,
    yes: bool = typer.Option(
        False,  # noqa: FBT003
        "--yes",
        "-y",
        help="Do not ask for confirmation.",
    ),
    supabase_url: str | None = opts.SUPABASE_URL,
    supabase_key: str | None = opts.SUPABASE_KEY,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Delete one of your rows."""
    setup_logging(log_level, log_file)
    kind = _kind(kind_name)
    if not yes and not typer.confirm(f"Supprimer {kind.label.lower()} {item_id} ?"):
        console.print("[dim]Annule.[/dim]")
        raise typer.Exit(0)
    cfg = supabase_config(supabase_url, supabase_key)

    async def _delete() -> None:
        async with open_store(cfg) as store:
            record = await require_admin(store)
            await delete_item(store, kind, record.id, item_id)
        console.print(f"[bold green]{kind.label} supprime(e).[/bold green]")

    _run(_delete())
