"""Configuration management for the OpenStream library engine."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file from config directory or project root
config_env = Path(__file__).parent.parent.parent / "config" / ".env"
if config_env.exists():
    load_dotenv(config_env)
else:
    # Fallback to working directory .env
    load_dotenv()


PLACEHOLDER_NAME = "OpenStream.txt"
PLACEHOLDER_TEXT = (
    "OpenStream music library.\n"
    "Add audio files to the Songs folder to import them.\n"
)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Library layout
        self.library_root = Path(
            os.getenv(
                "OPENSTREAM_LIBRARY_ROOT",
                str(Path.home() / "Music" / "OpenStream"),
            )
        ).expanduser()
        self.songs_directory = self.library_root / "Songs"
        self.artwork_cache_directory = self.songs_directory / ".artwork-cache"

        # Audio files eligible for adoption (lower-case, without dot)
        self.audio_extensions = frozenset(
            (
                "mp3",
                "m4a",
                "aac",
                "flac",
                "wav",
                "ogg",
                "opus",
                "aiff",
                "wma",
                "alac",
                "m4b",
            )
        )

        # Scan settings
        self.scan_workers = max(1, int(os.getenv("OPENSTREAM_SCAN_WORKERS", "4")))
        self.write_sidecars = _env_flag("OPENSTREAM_WRITE_SIDECARS", True)

        # Logging
        self.log_level = os.getenv("OPENSTREAM_LOG_LEVEL", "WARNING").upper()

        # Database settings
        default_db_path = str(Path.home() / ".openstream" / "catalog.db")
        self.database_path = Path(
            os.getenv("OPENSTREAM_DATABASE_PATH", default_db_path)
        ).expanduser()

        # Ensure directories exist
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Ensure required directories exist."""
        self.songs_directory.mkdir(parents=True, exist_ok=True)
        self.artwork_cache_directory.mkdir(parents=True, exist_ok=True)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        # Give the library root visible content so file managers list it
        placeholder = self.library_root / PLACEHOLDER_NAME
        if not placeholder.exists():
            try:
                placeholder.write_text(PLACEHOLDER_TEXT, encoding="utf-8")
            except OSError as e:
                logger.warning("Could not write %s: %s", placeholder, e)


def get_config() -> Config:
    """Get application configuration."""
    return Config()
