"""Catalog persistence layer (models and store)."""

from .models import Album, AppSettings, Base, Song
from .service import CatalogStore

__all__ = [
    # Models
    "Album",
    "AppSettings",
    "Base",
    "Song",
    # Store
    "CatalogStore",
]
