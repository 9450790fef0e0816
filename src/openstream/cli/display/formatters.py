"""Display formatters and UI helpers for CLI."""

import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ...core.importer import ImportResult
from ...core.sync import SyncStatistics
from ...database.models import Album, Song

console = Console()
logger = logging.getLogger(__name__)


def format_duration(seconds: Optional[float]) -> str:
    """Format a duration in seconds as ``m:ss`` (``h:mm:ss`` past an hour)."""
    if not seconds or seconds < 0:
        return "0:00"
    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(num_bytes: int) -> str:
    """Human readable byte count."""
    size = float(num_bytes)
    if size < 1024:
        return f"{int(size)} B"
    for unit in ("KB", "MB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} GB"


def _print_errors(errors: List[str], style: str = "yellow") -> None:
    if not errors:
        return
    console.print(f"\n[{style}]⚠️  {len(errors)} error(s) occurred:[/{style}]")
    for error in errors[:10]:  # Show first 10 errors
        console.print(f"  • {error}")
    if len(errors) > 10:
        console.print(f"  ... and {len(errors) - 10} more")


def display_sync_statistics(stats: SyncStatistics) -> None:
    """Display the outcome of a synchronization pass.

    Args:
        stats: Statistics returned by the synchronizer
    """
    console.print("\n[bold green]✓ Library synchronized[/bold green]\n")

    table = Table(show_header=True, header_style="bold magenta", title="Sync")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")

    table.add_row("Audio Files Found", str(stats.files_found))
    table.add_row("Files Adopted", str(stats.files_adopted))
    table.add_row("Duplicates Skipped", str(stats.duplicates_skipped))
    table.add_row("Orphans Removed", str(stats.orphans_removed))
    table.add_row("Stale Records Replaced", str(stats.stale_removed))
    table.add_row("Artwork Repaired", str(stats.artwork_repaired))
    table.add_row("Albums Created", str(stats.albums_created))
    table.add_row("Albums Removed", str(stats.albums_removed))
    if stats.failures:
        table.add_row("Failures", f"[red]{stats.failures}[/red]")

    console.print(table)
    _print_errors(stats.errors)


def display_import_result(result: ImportResult) -> None:
    """Display the outcome of a copy-import batch.

    Args:
        result: Result returned by the import pipeline
    """
    summary = result.get_summary()
    if result.error_message:
        console.print(f"\n[red]✗ {result.error_message}[/red]")
        return

    console.print("\n[bold green]✓ Import complete[/bold green]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Imported", str(summary["imported"]))
    table.add_row("Duplicates Skipped", str(summary["duplicates"]))
    table.add_row("Errors", str(summary["errors"]))
    console.print(table)

    if result.imported:
        display_songs(result.imported, title="Imported Songs")
    _print_errors(result.errors)


def display_songs(songs: List[Song], title: str = "Songs") -> None:
    """Display songs in library order.

    Args:
        songs: Songs to list
        title: Table title
    """
    if not songs:
        console.print("[yellow]No songs in library[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta", title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Artist", style="green")
    table.add_column("Album")
    table.add_column("Time", justify="right")

    for song in songs:
        table.add_row(
            song.id[:8],
            str(song.track_number) if song.track_number else "",
            song.title,
            song.artist,
            song.album_name or "",
            format_duration(song.duration),
        )

    console.print(table)
    console.print(f"[dim]{len(songs)} song(s)[/dim]")


def display_albums(albums: List[Album]) -> None:
    """Display albums ordered by name."""
    if not albums:
        console.print("[yellow]No albums in library[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta", title="Albums")
    table.add_column("Album", style="cyan")
    table.add_column("Artist", style="green")
    table.add_column("Year", justify="right")
    table.add_column("Songs", justify="right")
    table.add_column("Artwork", justify="center")

    for album in albums:
        table.add_row(
            album.name,
            album.artist or "",
            str(album.year) if album.year else "",
            str(album.song_count),
            "✓" if album.artwork_path else "",
        )

    console.print(table)


def display_statistics(stats: Dict[str, Any], group_by_album: bool) -> None:
    """Display catalog statistics and current settings."""
    table = Table(show_header=False, title="Library")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Songs", str(stats["songs"]))
    table.add_row("Albums", str(stats["albums"]))
    table.add_row("Total Size", format_size(stats["total_bytes"]))
    table.add_row("Group By Album", "yes" if group_by_album else "no")
    table.add_row("Catalog", stats["database_path"])

    console.print(table)
