"""JSON metadata sidecars stored next to imported songs."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..database.models import Song

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".metadata.json"


def sidecar_path(song_file: Path) -> Path:
    """Location of the sidecar for ``song_file`` (``<name>.metadata.json``)."""
    song_file = Path(song_file)
    return song_file.with_name(song_file.name + SIDECAR_SUFFIX)


def song_metadata(song: Song) -> Dict[str, Any]:
    """Serializable metadata record for a song."""
    return {
        "song_id": song.id,
        "title": song.title,
        "artist": song.artist,
        "album": song.album_name,
        "album_artist": song.album_artist,
        "genre": song.genre,
        "composer": song.composer,
        "year": song.year,
        "track_number": song.track_number,
        "disc_number": song.disc_number,
        "duration": song.duration,
        "lyrics": song.lyrics,
        "description": song.description,
        "artwork_path": song.artwork_path,
        "is_user_edited": False,
        "last_modified": datetime.now(timezone.utc).isoformat(),
        "metadata_source": "local",
    }


def write_sidecar(song: Song, song_file: Path) -> bool:
    """Write the sidecar for ``song``; failures are logged, never raised.

    Returns:
        True if the sidecar was written
    """
    path = sidecar_path(song_file)
    try:
        path.write_text(
            json.dumps(song_metadata(song), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Failed to write sidecar %s: %s", path.name, e)
        return False
    return True


def read_sidecar(song_file: Path) -> Optional[Dict[str, Any]]:
    """Load a sidecar if present and well-formed."""
    path = sidecar_path(song_file)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Ignoring unreadable sidecar %s: %s", path.name, e)
        return None
    return data if isinstance(data, dict) else None


def remove_sidecar(song_file: Path) -> None:
    """Delete the sidecar for ``song_file`` if it exists."""
    path = sidecar_path(song_file)
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove sidecar %s: %s", path.name, e)
