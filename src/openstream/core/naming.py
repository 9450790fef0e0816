"""File and album-folder naming for the managed songs directory."""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from ..database.models import Song

logger = logging.getLogger(__name__)

UNSAFE_CHARACTERS = re.compile(r'[/\\:*?"<>|]')
DEFAULT_EXTENSION = "mp3"
MAX_COUNTER = 999


def sanitize(text: str) -> str:
    """Replace path-unsafe characters with ``_`` and trim whitespace."""
    return UNSAFE_CHARACTERS.sub("_", text).strip()


def file_name(
    artist: str,
    title: str,
    track_number: Optional[int],
    extension: str,
) -> str:
    """Build the conventional file name for a song.

    Format is ``"NN - Artist - Title.ext"`` when a positive track number is
    known, ``"Artist - Title.ext"`` otherwise.

    Args:
        artist: Track artist
        title: Track title
        track_number: Optional track number
        extension: Source extension, with or without the leading dot

    Returns:
        Sanitized file name
    """
    artist_part = sanitize(artist or "") or "Unknown"
    title_part = sanitize(title or "") or "Untitled"

    if track_number is not None and track_number > 0:
        base_name = f"{track_number:02d} - {artist_part} - {title_part}"
    else:
        base_name = f"{artist_part} - {title_part}"

    ext = (extension or "").lstrip(".").lower() or DEFAULT_EXTENSION
    return f"{base_name}.{ext}"


def unique_name(base: str, directory: Path) -> str:
    """Return a file name that does not collide inside ``directory``.

    ``base`` is returned unchanged when free; otherwise `` (k)`` is inserted
    before the extension for k = 1, 2, ... . After 999 collisions a short
    random token is used instead of a counter.
    """
    directory = Path(directory)
    if not (directory / base).exists():
        return base

    suffix = Path(base).suffix
    stem = base[: -len(suffix)] if suffix else base

    for counter in range(1, MAX_COUNTER + 1):
        candidate = f"{stem} ({counter}){suffix}"
        if not (directory / candidate).exists():
            return candidate

    token = uuid.uuid4().hex[:8]
    logger.warning("Exhausted numbered names for %s, using token %s", base, token)
    return f"{stem} ({token}){suffix}"


def folder_name(album_name: str) -> str:
    """Sanitize an album name for use as a single directory component.

    Leading dots are dropped so album folders never become hidden or
    relative (``.`` / ``..``) entries.
    """
    return sanitize(album_name).lstrip(".").strip()


class NamingPolicy:
    """Resolves where songs live inside the managed songs directory."""

    def __init__(self, songs_directory: Path) -> None:
        """Initialize naming policy.

        Args:
            songs_directory: Root of the managed tree
        """
        self.songs_directory = Path(songs_directory)

    def album_directory(self, album_name: Optional[str], group_by_album: bool) -> Path:
        """Directory a song with the given album should be placed in.

        Args:
            album_name: Album name from metadata, may be absent
            group_by_album: Current grouping setting

        Returns:
            The managed root, or an album subfolder when grouping applies
        """
        if not group_by_album or not album_name:
            return self.songs_directory
        folder = folder_name(album_name)
        if not folder:
            return self.songs_directory
        return self.songs_directory / folder

    def relative_folder(self, directory: Path) -> str:
        """Express ``directory`` relative to the managed root ("" for root)."""
        relative = Path(directory).relative_to(self.songs_directory)
        return "" if relative == Path(".") else relative.as_posix()

    def file_name(
        self,
        artist: str,
        title: str,
        track_number: Optional[int],
        extension: str,
    ) -> str:
        """See :func:`file_name`."""
        return file_name(artist, title, track_number, extension)

    def unique_name(self, base: str, directory: Path) -> str:
        """See :func:`unique_name`."""
        return unique_name(base, directory)

    def song_path(self, song: Song) -> Path:
        """Location of a song's file: its recorded folder plus its file name.

        The folder is recorded when the file is placed or adopted, so toggling
        the grouping setting never changes where an existing song lives.
        """
        directory = self.songs_directory
        if song.folder:
            directory = directory / song.folder
        return directory / song.file_name

    def find_song_file(self, song: Song) -> Optional[Path]:
        """The song's file if it exists on disk."""
        path = self.song_path(song)
        return path if path.is_file() else None
