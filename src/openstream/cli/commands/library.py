"""Commands that change the library: sync, import, delete."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console

from ...exceptions import SongNotFoundError
from ...utils.logging_config import set_log_level
from ..context import LibraryContext, pass_library_context
from ..display import display_import_result, display_sync_statistics

console = Console()
logger = logging.getLogger(__name__)


@click.command("sync")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the library engine during this pass",
)
@pass_library_context
def sync_command(ctx: LibraryContext, log_level: Optional[str]) -> None:
    """Synchronize the catalog with the songs folder.

    Removes songs whose files have disappeared and adopts audio files that
    were dropped into the folder.

    Examples:
        openstream sync
        openstream sync --log-level INFO
    """
    if log_level:
        set_log_level(log_level)

    library = ctx.open(synchronize=False)
    console.print(
        f"\n[bold cyan]🔄 Scanning {library.config.songs_directory}...[/bold cyan]"
    )

    stats = library.synchronize()
    if stats is None:
        console.print("[yellow]A synchronization is already running[/yellow]")
        return

    display_sync_statistics(stats)


@click.command("import")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_library_context
def import_command(ctx: LibraryContext, paths: Tuple[Path, ...]) -> None:
    """Copy audio files into the library.

    Files whose content is already in the library are skipped.

    Examples:
        openstream import ~/Downloads/song.mp3
        openstream import *.flac
    """
    result = ctx.library.import_files(paths)
    display_import_result(result)
    if result.error_message:
        raise click.ClickException(result.error_message)


@click.command("delete")
@click.argument("song_id")
@click.confirmation_option(prompt="Delete this song and its file?")
@pass_library_context
def delete_command(ctx: LibraryContext, song_id: str) -> None:
    """Delete a song, its audio file and its metadata sidecar."""
    library = ctx.library
    song = library.get_song(song_id)
    try:
        library.delete_song(song_id)
    except SongNotFoundError as e:
        raise click.ClickException(str(e)) from e

    console.print(f"[green]✓ Deleted {song.artist} - {song.title}[/green]")
