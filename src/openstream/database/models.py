"""SQLAlchemy models for the song catalog."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    """Return a fresh stable identifier for a catalog record."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime (SQLite friendly)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Song(Base):
    """An audio file in the managed library."""

    __tablename__ = "songs"

    # Identity, assigned by the catalog at creation
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Storage
    file_name: Mapped[str] = mapped_column(String(1000), nullable=False, index=True)
    folder: Mapped[str] = mapped_column(
        String(1000), nullable=False, default=""
    )  # Directory the file was placed in, relative to the songs directory
    content_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )  # SHA256 of the file bytes
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )

    # Core display
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    artist: Mapped[str] = mapped_column(String(500), nullable=False)
    duration: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )  # seconds

    # Extended metadata
    lyrics: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    album_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    album_artist: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    track_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    disc_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    composer: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    artwork_path: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Non-owning link to the album grouping
    album_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="SET NULL"), nullable=True
    )
    album: Mapped[Optional["Album"]] = relationship("Album", back_populates="songs")

    __table_args__ = (
        Index("idx_song_album", "album_id"),
        Index("idx_song_artist_title", "artist", "title"),
    )

    @property
    def resolved_album_artist(self) -> str:
        """Album artist used for album grouping (falls back to track artist)."""
        return self.album_artist or self.artist

    def __repr__(self) -> str:
        """String representation of Song."""
        return f"<Song(id={self.id}, title='{self.title}', artist='{self.artist}')>"


class Album(Base):
    """A grouping of songs sharing an album name and artist."""

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    artist: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    artwork_path: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    songs: Mapped[List["Song"]] = relationship("Song", back_populates="album")

    __table_args__ = (UniqueConstraint("name", "artist", name="uq_album_name_artist"),)

    @property
    def song_count(self) -> int:
        """Number of member songs."""
        return len(self.songs)

    def update_artwork(self, artwork_path: Optional[str]) -> bool:
        """Adopt an artwork path if the album has none yet.

        Returns:
            True if the album artwork was set
        """
        if self.artwork_path is None and artwork_path:
            self.artwork_path = artwork_path
            return True
        return False

    def __repr__(self) -> str:
        """String representation of Album."""
        return f"<Album(id={self.id}, name='{self.name}', artist='{self.artist}')>"


class AppSettings(Base):
    """Singleton row holding user preferences."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_by_album: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    def __repr__(self) -> str:
        """String representation of AppSettings."""
        return f"<AppSettings(group_by_album={self.group_by_album})>"
