"""Exception hierarchy for the OpenStream library engine."""


class OpenStreamError(Exception):
    """Base class for all library engine errors."""


class CatalogError(OpenStreamError):
    """Raised when the catalog cannot be read or persisted."""


class ImportFailedError(OpenStreamError):
    """Raised when a single file cannot be read, placed or cataloged."""

    def __init__(self, source: object, reason: str) -> None:
        """Initialize the error.

        Args:
            source: File that failed to import
            reason: Human readable failure reason
        """
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class SongNotFoundError(OpenStreamError):
    """Raised when a song id is not present in the catalog."""

    def __init__(self, song_id: str) -> None:
        """Initialize the error.

        Args:
            song_id: The unknown song id
        """
        self.song_id = song_id
        super().__init__(f"Song not found: {song_id}")
