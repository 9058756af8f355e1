"""CLI entry point for chat-lineage.

Invoked as::

    chat-lineage [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m chat_lineage.cli.main

Commands
--------
- version      — Show version information
- config       — Print the effective settings
- chats        — Chat command group for one owner's chat directory

Chat sub-commands
-----------------
- chats tree    — Print the lineage forest
- chats list    — List chats in a table
- chats rename  — Rename a chat
- chats delete  — Delete one or more chats
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

console = Console()

_DEFAULT_CHATS_DIR: Path = Path.home() / ".chat-lineage" / "chats"

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Manager factory
# ---------------------------------------------------------------------------


def _make_manager(
    chats_dir: str | None,
    owner: str,
    current: str | None,
    config_path: str | None,
) -> object:
    """Build a ChatManager over a filesystem record source.

    Parameters
    ----------
    chats_dir:
        Directory holding one sub-directory per owner.
    owner:
        Owner (character) whose chats are listed.
    current:
        Id of the owner's active chat, if any.
    config_path:
        Optional YAML/JSON settings file.

    Returns
    -------
    ChatManager
        A manager ready for ``load``.
    """
    from chat_lineage.cache.manager import CacheManager
    from chat_lineage.config import SettingsError, load_settings
    from chat_lineage.manager.chat_manager import ChatManager
    from chat_lineage.sources.filesystem import FilesystemRecordSource

    try:
        settings = load_settings(config_path)
    except SettingsError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(1)

    directory = Path(chats_dir) if chats_dir else _DEFAULT_CHATS_DIR
    source = FilesystemRecordSource(directory, owner, current_file=current)
    cache = CacheManager(source, settings)
    return ChatManager(cache, source, delete_interval=0.0, settle_delay=0.0)


def _run(awaitable: Coroutine[Any, Any, T]) -> T:
    """Run *awaitable* to completion, exiting with status 1 on a fetch failure."""
    from chat_lineage.cache.manager import RecordFetchError

    try:
        return asyncio.run(awaitable)
    except RecordFetchError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(1)


def _load(manager: object) -> None:
    _run(manager.load(force=True))  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="chat-lineage")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Chat session lineage: branch trees, checkpoints, and cleanup"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from chat_lineage import __version__

    console.print(f"[bold]chat-lineage[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.command(name="config")
@click.option("--config", "config_path", default=None, help="Settings file (YAML or JSON).")
@click.option(
    "--format",
    "fmt",
    default="yaml",
    show_default=True,
    type=click.Choice(["yaml", "json"], case_sensitive=False),
    help="Output format.",
)
def config_command(config_path: str | None, fmt: str) -> None:
    """Print the effective settings (defaults merged with CONFIG)."""
    from chat_lineage.config import SettingsError, dump_settings, load_settings

    try:
        settings = load_settings(config_path)
    except SettingsError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(1)
    click.echo(dump_settings(settings, fmt.lower()).rstrip())  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# chats command group
# ---------------------------------------------------------------------------


@cli.group(name="chats")
@click.option(
    "--chats-dir",
    default=None,
    envvar="CHAT_LINEAGE_DIR",
    help="Directory holding one sub-directory of .jsonl chats per owner.",
)
@click.option("--owner", required=True, help="Owner (character) whose chats to use.")
@click.option("--current", default=None, help="Id of the owner's active chat.")
@click.option("--config", "config_path", default=None, help="Settings file (YAML or JSON).")
@click.pass_context
def chats_group(
    ctx: click.Context,
    chats_dir: str | None,
    owner: str,
    current: str | None,
    config_path: str | None,
) -> None:
    """Chat lineage commands for one owner."""
    ctx.ensure_object(dict)
    ctx.obj["manager"] = _make_manager(chats_dir, owner, current, config_path)


# ---------------------------------------------------------------------------
# chats tree
# ---------------------------------------------------------------------------


@chats_group.command(name="tree")
@click.option(
    "--sort-by",
    default=None,
    type=click.Choice(["updated_at", "created_at", "name", "message_count"]),
    help="Sort key (defaults to the configured sort).",
)
@click.option("--order", default=None, type=click.Choice(["asc", "desc"]), help="Sort direction.")
@click.option("--search", default="", help="Only show chats matching this keyword.")
@click.option("--hide-checkpoints", is_flag=True, help="Hide checkpoint chats.")
@click.option("--expand-all", is_flag=True, help="Expand every tree, including large ones.")
@click.pass_context
def chats_tree(
    ctx: click.Context,
    sort_by: str | None,
    order: str | None,
    search: str,
    hide_checkpoints: bool,
    expand_all: bool,
) -> None:
    """Print the lineage forest of the owner's chats."""
    from chat_lineage.records.models import SortConfig
    from chat_lineage.tree.ops import connector_prefix, visible_nodes

    manager = ctx.obj["manager"]
    _load(manager)

    cache = manager.cache
    if sort_by or order:
        base = cache.sort_config
        cache.set_sort_config(
            SortConfig(by=sort_by or base.by, order=order or base.order)
        )
    if search:
        cache.set_search_keyword(search)
    if hide_checkpoints:
        cache.set_show_checkpoints(False)

    forest = manager.forest
    if not forest.trees:
        console.print("[yellow]No chats found.[/yellow]")
        return

    if expand_all:
        manager.expand_all(True)

    for tree in forest.trees:
        hidden = 0 if tree.expanded else tree.node_count - 1
        for entry in visible_nodes(tree):
            record = entry.node.record
            label = escape(record.display_name)
            if record.is_current:
                label = f"[bold green]{label}[/bold green] *"
            if record.is_checkpoint:
                label += " [dim]\\[checkpoint][/dim]"
            console.print(
                f"{connector_prefix(entry)}{label} "
                f"[dim]({record.message_count} msgs, {record.updated_at:%Y-%m-%d %H:%M})[/dim]"
            )
        if hidden:
            console.print(f"    [dim]... {hidden} more (use --expand-all)[/dim]")

    console.print(f"\n[dim]{forest.total_count} chat(s) in {len(forest.trees)} tree(s).[/dim]")


# ---------------------------------------------------------------------------
# chats list
# ---------------------------------------------------------------------------


@chats_group.command(name="list")
@click.option("--limit", default=50, show_default=True, help="Maximum chats to show.")
@click.pass_context
def chats_list(ctx: click.Context, limit: int) -> None:
    """List the owner's chats."""
    manager = ctx.obj["manager"]
    _load(manager)

    records = manager.cache.filtered_records
    if not records:
        console.print("[yellow]No chats found.[/yellow]")
        return

    table = Table(title="Chats", show_lines=False)
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Messages", justify="right")
    table.add_column("Updated")
    table.add_column("Flags")

    for record in records[:limit]:
        flags = []
        if record.is_current:
            flags.append("current")
        if record.is_checkpoint:
            flags.append("checkpoint")
        if record.parent_hint:
            flags.append(f"from {record.parent_hint}")
        table.add_row(
            escape(record.record_id),
            escape(record.display_name),
            str(record.message_count),
            record.updated_at.strftime("%Y-%m-%d %H:%M"),
            escape(", ".join(flags)),
        )

    console.print(table)
    console.print(f"\n[dim]Showing {min(limit, len(records))} of {len(records)} chats.[/dim]")


# ---------------------------------------------------------------------------
# chats rename
# ---------------------------------------------------------------------------


@chats_group.command(name="rename")
@click.argument("record_id")
@click.argument("new_name")
@click.pass_context
def chats_rename(ctx: click.Context, record_id: str, new_name: str) -> None:
    """Rename chat RECORD_ID to NEW_NAME."""
    manager = ctx.obj["manager"]
    ok = _run(manager.rename_chat(record_id, new_name))
    if not ok:
        console.print(f"[red]Rename failed:[/red] {escape(record_id)}")
        sys.exit(1)
    console.print(f"[green]Renamed[/green] {escape(record_id)} -> {escape(new_name)}")


# ---------------------------------------------------------------------------
# chats delete
# ---------------------------------------------------------------------------


@chats_group.command(name="delete")
@click.argument("record_ids", nargs=-1, required=True)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def chats_delete(ctx: click.Context, record_ids: tuple[str, ...], yes: bool) -> None:
    """Delete the chats RECORD_IDS."""
    manager = ctx.obj["manager"]
    _load(manager)

    if manager.settings.confirm_delete and not yes:
        click.confirm(
            f"Delete {len(record_ids)} chat(s)? This cannot be undone.",
            abort=True,
        )

    result = _run(manager.delete_chats(list(record_ids)))
    if result is None:
        console.print("[yellow]Nothing deleted.[/yellow]")
        return

    if result.fail_count:
        console.print(
            f"[yellow]Partially deleted:[/yellow] {result.success_count} ok, "
            f"{result.fail_count} failed ({escape(', '.join(result.failed_ids))})"
        )
        sys.exit(1)
    console.print(f"[green]Deleted {result.success_count} chat(s).[/green]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
