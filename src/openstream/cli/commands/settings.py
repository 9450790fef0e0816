"""Library settings command."""

from typing import Optional

import click
from rich.console import Console

from ..context import LibraryContext, pass_library_context

console = Console()


@click.command("settings")
@click.option(
    "--group-by-album/--flat",
    "group_by_album",
    default=None,
    help="Place future imports in album folders, or directly in the songs folder",
)
@pass_library_context
def settings_command(ctx: LibraryContext, group_by_album: Optional[bool]) -> None:
    """Show or change library settings.

    Changing the grouping only affects future imports; files already in the
    library are not moved.

    Examples:
        openstream settings
        openstream settings --flat
    """
    library = ctx.library
    if group_by_album is not None:
        library.set_group_by_album(group_by_album)
        console.print("[green]✓ Settings updated[/green]")

    mode = "album folders" if library.group_by_album else "flat"
    console.print(f"Group by album: [cyan]{mode}[/cyan]")
