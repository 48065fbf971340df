"""Command-line interface for workshop-sync."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .collection import parse_collection_id
from .config import SyncSettings, bind_collection, default_staging_dir
from .errors import SyncError
from .reconcile import REASON_MISSING, REASON_OUTDATED, REASON_UNTRACKED
from .service import SyncService
from .steamcmd import DEFAULT_APP_ID
from .tasks import TaskManager

console = Console()

REASON_LABELS = {
    REASON_MISSING: "[blue]Not installed[/blue]",
    REASON_UNTRACKED: "[yellow]Untracked, refresh[/yellow]",
    REASON_OUTDATED: "[yellow]Update available[/yellow]",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # Keep urllib3 connection chatter out of --verbose output
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--steamcmd",
    envvar="WORKSHOP_SYNC_STEAMCMD",
    help="Path to the steamcmd executable (default: search PATH)",
)
@click.option(
    "--staging-dir",
    envvar="WORKSHOP_SYNC_STAGING",
    type=click.Path(path_type=Path),
    help="Scratch directory for steamcmd downloads",
)
@click.option(
    "--app-id",
    envvar="WORKSHOP_SYNC_APP_ID",
    default=DEFAULT_APP_ID,
    show_default=True,
    help="Steam app id the Workshop items belong to",
)
@click.option(
    "--api-key",
    envvar="STEAM_API_KEY",
    help="Steam Web API key (or set STEAM_API_KEY env var)",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    steamcmd: str | None,
    staging_dir: Path | None,
    app_id: str,
    api_key: str | None,
) -> None:
    """Keep a mods directory in sync with a Steam Workshop collection."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = SyncSettings(
        app_id=app_id,
        steamcmd=steamcmd,
        staging_dir=staging_dir or default_staging_dir(),
        api_key=api_key,
    )


@main.command()
@click.argument("target_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--collection", help="Collection id or URL (default: the bound collection)")
@click.pass_context
def sync(ctx: click.Context, target_dir: Path, collection: str | None) -> None:
    """
    Download, update and remove items so TARGET_DIR matches the collection.

    TARGET_DIR: Directory holding the installed items
    """
    service = SyncService(ctx.obj["settings"])
    tasks = TaskManager()

    task_id = tasks.submit("sync", service.sync, target_dir, collection)
    with console.status(f"[bold]Syncing {target_dir}...[/bold]"):
        task = tasks.wait(task_id)

    if task.status == "failed":
        if isinstance(task.exception, SyncError):
            console.print(f"[red]Error:[/red] {task.exception}")
            sys.exit(1)
        raise task.exception

    result = task.result
    console.print(f"[bold]Collection:[/bold] {result.collection_id}")
    console.print(f"[bold]Items in collection:[/bold] {result.items_total}")
    console.print(f"[bold]Installed:[/bold] {len(result.installed)}")
    console.print(f"[bold]Removed:[/bold] {result.removed}")
    if result.not_downloaded:
        console.print(
            f"[yellow]Warning:[/yellow] {len(result.not_downloaded)} item(s) were not "
            "downloaded and will be retried next sync:"
        )
        for item_id in result.not_downloaded:
            console.print(f"  - {item_id}")
    console.print("\n[green]Sync complete![/green]")


@main.command()
@click.argument("target_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--collection", help="Collection id or URL (default: the bound collection)")
@click.pass_context
def status(ctx: click.Context, target_dir: Path, collection: str | None) -> None:
    """
    Show what a sync would change, without changing anything.

    TARGET_DIR: Directory holding the installed items
    """
    service = SyncService(ctx.obj["settings"])

    console.print("[dim]Checking collection...[/dim]")
    try:
        result = service.plan(target_dir, collection)
    except SyncError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    plan = result.plan
    console.print(f"[bold]Collection:[/bold] {result.collection_id}")
    console.print(f"[bold]Items in collection:[/bold] {len(result.remote)}")

    if plan.is_empty:
        console.print("[green]Everything is up to date![/green]")
        return

    table = Table(title="Pending Changes")
    table.add_column("Item", style="cyan")
    table.add_column("Installed", style="green")
    table.add_column("Latest", style="blue")
    table.add_column("Action")

    for item in sorted(plan.install, key=lambda i: i.id):
        installed = result.manifest.get(item.id)
        table.add_row(
            item.id,
            str(installed) if installed is not None else "-",
            str(item.version),
            REASON_LABELS[plan.reasons[item.id]],
        )

    for item_id in sorted(plan.remove):
        installed = result.manifest.get(item_id)
        table.add_row(
            item_id,
            str(installed) if installed is not None else "-",
            "-",
            "[red]Removed from collection[/red]",
        )

    console.print(table)


@main.command()
@click.argument("target_dir", type=click.Path(file_okay=False, path_type=Path))
@click.argument("collection")
def bind(target_dir: Path, collection: str) -> None:
    """
    Bind TARGET_DIR to a collection so 'sync' can run without --collection.

    COLLECTION: Collection id or steamcommunity.com URL
    """
    try:
        collection_id = parse_collection_id(collection)
        bind_collection(target_dir, collection_id)
    except SyncError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Bound {target_dir} to collection {collection_id}[/green]")
