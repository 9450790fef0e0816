"""OpenStream local music library engine.

Keeps a managed songs folder and a SQLite catalog in agreement: imports
external audio files, adopts files dropped into the folder, deduplicates by
content hash, groups songs into albums and caches embedded cover art.
"""

__version__ = "1.0.0"
__author__ = "OpenStream"
__email__ = ""

from .config import Config
from .core.importer import ImportResult
from .core.library import LibraryService
from .core.sync import SyncState, SyncStatistics, SyncStatus
from .database import Album, Song

__all__ = [
    "Album",
    "Song",
    "Config",
    "ImportResult",
    "LibraryService",
    "SyncState",
    "SyncStatistics",
    "SyncStatus",
]
