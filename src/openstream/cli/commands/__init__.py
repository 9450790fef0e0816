"""CLI command modules."""

from .browse import albums_command, locate_command, songs_command, stats_command
from .library import delete_command, import_command, sync_command
from .settings import settings_command

__all__ = [
    "albums_command",
    "delete_command",
    "import_command",
    "locate_command",
    "settings_command",
    "songs_command",
    "stats_command",
    "sync_command",
]
