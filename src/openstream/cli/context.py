"""Shared state handed from the CLI group to its commands."""

from typing import Optional

import click

from ..config import Config
from ..core.library import LibraryService
from ..exceptions import CatalogError


class LibraryContext:
    """Opens the catalog on first use."""

    def __init__(self, config: Optional[Config] = None) -> None:
        """Initialize CLI context.

        Args:
            config: Configuration override (environment is used if None)
        """
        self._config = config
        self._library: Optional[LibraryService] = None

    def open(self, synchronize: bool = True) -> LibraryService:
        """Open the library service once and return it.

        Args:
            synchronize: Run the startup synchronization pass when opening

        Raises:
            click.ClickException: If the catalog cannot be opened
        """
        if self._library is None:
            try:
                self._library = LibraryService(
                    self._config or Config(), synchronize_on_open=synchronize
                )
            except CatalogError as e:
                raise click.ClickException(str(e)) from e
        return self._library

    @property
    def library(self) -> LibraryService:
        """The opened library service (synchronized on open)."""
        return self.open()

    def close(self) -> None:
        """Close the library if it was opened."""
        if self._library is not None:
            self._library.close()
            self._library = None


pass_library_context = click.make_pass_decorator(LibraryContext)
