"""Read-only commands: list songs and albums, locate files, statistics."""

import click
from rich.console import Console

from ...exceptions import SongNotFoundError
from ..context import LibraryContext, pass_library_context
from ..display import display_albums, display_songs, display_statistics

console = Console()


@click.command("songs")
@click.option("--limit", "-n", type=int, default=None, help="Show at most N songs")
@pass_library_context
def songs_command(ctx: LibraryContext, limit: int) -> None:
    """List songs, newest import first."""
    songs = ctx.library.songs()
    display_songs(songs[:limit] if limit else songs)


@click.command("albums")
@pass_library_context
def albums_command(ctx: LibraryContext) -> None:
    """List albums by name."""
    display_albums(ctx.library.albums())


@click.command("locate")
@click.argument("song_id")
@pass_library_context
def locate_command(ctx: LibraryContext, song_id: str) -> None:
    """Print the playable file path of a song."""
    try:
        path = ctx.library.get_file_location_by_id(song_id)
    except SongNotFoundError as e:
        raise click.ClickException(str(e)) from e
    click.echo(str(path))


@click.command("stats")
@pass_library_context
def stats_command(ctx: LibraryContext) -> None:
    """Show library statistics."""
    library = ctx.library
    display_statistics(library.get_statistics(), library.group_by_album)
