"""CLI display and formatting utilities."""

from .formatters import (
    display_albums,
    display_import_result,
    display_songs,
    display_statistics,
    display_sync_statistics,
    format_duration,
    format_size,
)

__all__ = [
    "display_albums",
    "display_import_result",
    "display_songs",
    "display_statistics",
    "display_sync_statistics",
    "format_duration",
    "format_size",
]
