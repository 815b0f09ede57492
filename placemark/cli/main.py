"""
Command line interface for Placemark.

Copies or moves catalogued photos into a destination folder with preview,
conflict detection, automatic rollback and undo.
"""

import signal
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from .. import __version__
from ..core.exceptions import ConflictError, PlacemarkError
from ..core.types import ExecutionProgress, OperationPlan, OperationStatus
from ..db.config import Settings
from ..operations.service import OperationsService
from ..shared.utils import format_bytes, parse_id_list, setup_logging

console = Console()


def _service(ctx: click.Context) -> OperationsService:
    return ctx.obj


def _fail(error: Exception, verbose: bool = False) -> None:
    """Print an error and exit with status 1."""
    console.print(f"\n[red]✗ Error: {error}[/red]")
    if isinstance(error, ConflictError):
        console.print("[yellow]Pick another destination or remove these files:[/yellow]")
        for name in error.conflicts[:10]:
            console.print(f"  [red]• {name}[/red]")
        if len(error.conflicts) > 10:
            console.print(f"  [dim]... and {len(error.conflicts) - 10} more[/dim]")
    if verbose:
        console.print_exception()
    sys.exit(1)


def _ids_option(value: str):
    try:
        ids = parse_id_list(value)
    except ValueError:
        raise click.BadParameter("IDs must be a comma separated list of integers")
    if not ids:
        raise click.BadParameter("At least one photo ID is required")
    return ids


def _display_plan(plan: OperationPlan) -> None:
    """Display a previewed plan."""
    table = Table(title=f"Preview: {plan.operation_type} to {plan.dest_folder}")
    table.add_column("Photo", style="cyan", justify="right")
    table.add_column("Source")
    table.add_column("Destination")
    table.add_column("Status")

    for op in plan.operations:
        status_style = "green" if op.status == OperationStatus.PENDING else "yellow"
        table.add_row(
            str(op.photo_id),
            op.source_path,
            op.dest_path,
            f"[{status_style}]{op.status}[/{status_style}]",
        )

    console.print(table)
    console.print(
        f"  Files: {plan.total_files}  Size: {format_bytes(plan.total_size)}  "
        f"To {plan.operation_type}: {len(plan.pending_operations)}  "
        f"Skipped: {len(plan.skipped_operations)}"
    )
    for warning in plan.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")


@click.group()
@click.version_option(__version__, prog_name="placemark")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Database file (default: ~/.placemark/placemark.db)",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose output")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Only show warnings")
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[str], verbose: bool, quiet: bool) -> None:
    """Reorganize photos with atomic, undoable copy/move batches."""
    setup_logging(verbose=verbose, quiet=quiet, console=console)

    app_settings = Settings()
    if db_path:
        app_settings = Settings(database_path=Path(db_path))

    ctx.obj = OperationsService.from_settings(app_settings)
    ctx.meta["verbose"] = verbose


@cli.group()
def catalog() -> None:
    """Manage catalogued photos."""


@catalog.command("add")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
)
@click.pass_context
def catalog_add(ctx: click.Context, files) -> None:
    """Register FILES in the photo catalog."""
    service = _service(ctx)
    for file in files:
        photo = service.catalog.add_photo(Path(file))
        console.print(f"[green]✓[/green] {photo.id}: {photo.source_path}")


@catalog.command("list")
@click.pass_context
def catalog_list(ctx: click.Context) -> None:
    """List catalogued photos."""
    photos = _service(ctx).catalog.list_photos()
    if not photos:
        console.print("[yellow]Catalog is empty[/yellow]")
        return

    table = Table(title="Photos")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Path")
    table.add_column("Size", justify="right")
    for photo in photos:
        table.add_row(str(photo.id), photo.source_path, format_bytes(photo.file_size))
    console.print(table)


@cli.command()
@click.argument("destination", type=click.Path(file_okay=False))
@click.option("--ids", required=True, help="Comma separated photo IDs")
@click.option(
    "--operation",
    type=click.Choice(["copy", "move"], case_sensitive=False),
    default="copy",
    help="Operation type: copy (safe) or move (removes originals)",
)
@click.pass_context
def preview(ctx: click.Context, destination: str, ids: str, operation: str) -> None:
    """Show what copying/moving photos to DESTINATION would do."""
    service = _service(ctx)
    try:
        plan = service.preview_ids(_ids_option(ids), destination, operation.lower())
    except PlacemarkError as e:
        _fail(e, ctx.meta.get("verbose", False))
        return

    _display_plan(plan)
    console.print("\n[yellow]This was a preview - no files were modified[/yellow]")


@cli.command()
@click.argument("destination", type=click.Path(file_okay=False))
@click.option("--ids", required=True, help="Comma separated photo IDs")
@click.option(
    "--operation",
    type=click.Choice(["copy", "move"], case_sensitive=False),
    default="copy",
    help="Operation type: copy (safe) or move (removes originals)",
)
@click.option("-y", "--yes", is_flag=True, default=False, help="Don't ask for confirmation")
@click.pass_context
def run(
    ctx: click.Context, destination: str, ids: str, operation: str, yes: bool
) -> None:
    """
    Copy or move photos into DESTINATION.

    \b
    Safety Features:
        • Any existing different file at the destination aborts the batch
        • A failure part way rolls back every file already done
        • Ctrl-C stops after the current file and rolls back
        • The last batch can be undone with `placemark undo`
    """
    service = _service(ctx)
    verbose = ctx.meta.get("verbose", False)
    operation = operation.lower()

    try:
        plan = service.preview_ids(_ids_option(ids), destination, operation)
    except PlacemarkError as e:
        _fail(e, verbose)
        return

    _display_plan(plan)

    if operation == "move" and not yes:
        console.print("\n[red]⚠ WARNING: MOVE operation will remove original files![/red]")
        if not click.confirm("Continue with MOVE operation?"):
            console.print("[yellow]Cancelled[/yellow]")
            return

    previous_handler = signal.signal(signal.SIGINT, lambda *_: service.cancel())
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeRemainingColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"{operation.title()}ing files...", total=None)

            def on_progress(event: ExecutionProgress) -> None:
                progress.update(
                    task,
                    total=event.total_files,
                    completed=event.completed_files,
                    description=f"{event.phase}: {event.current_file}",
                )

            result = service.execute(plan, progress=on_progress)
    except PlacemarkError as e:
        _fail(e, verbose)
        return
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    console.print(f"\n[green]✓ {result.message}[/green]")
    if result.batch_id:
        console.print(f"[dim]Batch ID: {result.batch_id}[/dim]")
        console.print("[dim]You can undo this operation with: placemark undo[/dim]")


@cli.command()
@click.pass_context
def undo(ctx: click.Context) -> None:
    """Undo the most recent completed batch."""
    service = _service(ctx)
    result = service.undo_last_batch()

    if result.success:
        console.print(f"[green]✓ {result.message}[/green]")
        return

    if not result.failed:
        console.print(f"[yellow]{result.message}[/yellow]")
        return

    console.print(f"[red]✗ {result.message}[/red]")
    console.print("[yellow]These files need manual attention:[/yellow]")
    for failure in result.failed:
        console.print(f"  [red]• {failure}[/red]")
    sys.exit(1)


@cli.command()
@click.option("--limit", type=int, default=20, help="Number of batches to show")
@click.pass_context
def history(ctx: click.Context, limit: int) -> None:
    """Show recent batches."""
    batches = _service(ctx).history(limit)
    if not batches:
        console.print("[yellow]No operations recorded yet[/yellow]")
        return

    table = Table(title="Operation History")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("When")
    table.add_column("Operation")
    table.add_column("Files", justify="right")
    table.add_column("Status")
    table.add_column("Error", style="red")
    for batch in batches:
        table.add_row(
            str(batch.id),
            batch.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(batch.operation_type),
            str(len(batch.files)),
            str(batch.status),
            batch.error or "",
        )
    console.print(table)


@cli.group()
def session() -> None:
    """Manage the undo session."""


@session.command("reset")
@click.pass_context
def session_reset(ctx: click.Context) -> None:
    """Start a new session; earlier batches can no longer be undone."""
    archived = _service(ctx).start_session()
    console.print(f"[green]✓ New session started ({archived} batches archived)[/green]")


if __name__ == "__main__":
    cli()
