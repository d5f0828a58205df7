"""vfs-host CLI - build a project's virtual filesystem and manage the fetch cache."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.table import Table

from .config import DEFAULT_ENTRY_GLOB
from .console import console
from .errors import VfsHostError
from .fetcher import FetchCache
from .fetcher import get_cache_dir
from .logging_setup import init_logging
from .program import build_program
from .resolver import ImportMap
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)


def _format_size(size: int) -> str:
    size_float = float(size)
    for unit in ["B", "KB", "MB"]:
        if size_float < 1024:
            return f"{size_float:.1f} {unit}"
        size_float /= 1024
    return f"{size_float:.1f} GB"


def _read_import_map(path: Path) -> ImportMap:
    try:
        return ImportMap.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise click.BadParameter(format_error_message(e), param_hint="--import-map") from e


@click.group()
@click.option("--log-level", default=None, help="Log level (default: VFS_HOST_LOG_LEVEL or INFO)")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Append JSONL log records here")
def cli(log_level: str | None, log_file: str | None):
    """Resolve a module graph into a read-only virtual filesystem."""
    init_logging(level=log_level, path=log_file)


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path), default=".")
@click.option("--entry-glob", default=DEFAULT_ENTRY_GLOB, show_default=True, help="Entry file pattern")
@click.option(
    "--import-map",
    "import_map_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON import map ({imports, scopes})",
)
@click.option("--show-files", is_flag=True, help="List every loaded virtual path")
def build(root: Path, entry_glob: str, import_map_path: Path | None, show_files: bool):
    """Load every entry file under ROOT and all of its dependencies."""
    import_map = _read_import_map(import_map_path) if import_map_path else None

    try:
        program = asyncio.run(build_program(root_dir=root, entry_glob=entry_glob, import_map=import_map))
    except VfsHostError as e:
        console.print(f"[red]Build failed:[/red] {escape_markup(format_error_message(e, include_type=False))}")
        sys.exit(1)

    if show_files:
        table = Table(title="Virtual Files")
        table.add_column("Path", style="cyan")
        table.add_column("Size", justify="right")
        for path, text in sorted(program.store.items()):
            table.add_row(escape_markup(path), _format_size(len(text.encode("utf-8"))))
        console.print(table)

    console.print(f"[bold]Entry points:[/bold] {len(program.root_names)}")
    console.print(f"[bold]Loaded files:[/bold] {len(program.store)}")


@cli.group()
def cache():
    """Manage the fetch cache."""


@cache.command(name="path")
def cache_path():
    """Show the cache directory path."""
    cache_dir = get_cache_dir()
    console.print(f"[cyan]{escape_markup(cache_dir)}[/cyan]")
    if cache_dir.exists():
        console.print("[dim]Status: exists[/dim]")
    else:
        console.print("[dim]Status: not created yet[/dim]")


@cache.command(name="clear")
@click.confirmation_option(prompt="Delete every cached response?")
def cache_clear():
    """Delete every cached response."""
    removed = FetchCache().clear()
    console.print(f"[green]✓[/green] Removed {removed} cached responses")


def main() -> None:
    cli()
