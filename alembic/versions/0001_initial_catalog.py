"""initial_catalog

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "albums",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("artist", sa.String(length=500), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("artwork_path", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "artist", name="uq_album_name_artist"),
    )
    op.create_index("ix_albums_name", "albums", ["name"])

    op.create_table(
        "songs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("file_name", sa.String(length=1000), nullable=False),
        sa.Column("folder", sa.String(length=1000), nullable=False),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("imported_at", sa.DateTime(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("artist", sa.String(length=500), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False),
        sa.Column("lyrics", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("album_name", sa.String(length=500), nullable=True),
        sa.Column("album_artist", sa.String(length=500), nullable=True),
        sa.Column("genre", sa.String(length=200), nullable=True),
        sa.Column("track_number", sa.Integer(), nullable=True),
        sa.Column("disc_number", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("composer", sa.String(length=500), nullable=True),
        sa.Column("artwork_path", sa.String(length=1000), nullable=True),
        sa.Column("album_id", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["album_id"], ["albums.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_songs_file_name", "songs", ["file_name"])
    op.create_index("ix_songs_content_hash", "songs", ["content_hash"], unique=True)
    op.create_index("ix_songs_imported_at", "songs", ["imported_at"])
    op.create_index("idx_song_album", "songs", ["album_id"])
    op.create_index("idx_song_artist_title", "songs", ["artist", "title"])

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("group_by_album", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_index("idx_song_artist_title", table_name="songs")
    op.drop_index("idx_song_album", table_name="songs")
    op.drop_index("ix_songs_imported_at", table_name="songs")
    op.drop_index("ix_songs_content_hash", table_name="songs")
    op.drop_index("ix_songs_file_name", table_name="songs")
    op.drop_table("songs")
    op.drop_index("ix_albums_name", table_name="albums")
    op.drop_table("albums")
