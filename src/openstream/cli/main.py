"""Command-line interface for the OpenStream library.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Any, Optional

import click

from ..config import Config
from ..utils.logging_config import configure_third_party_loggers, setup_logging
from .commands import (
    albums_command,
    delete_command,
    import_command,
    locate_command,
    settings_command,
    songs_command,
    stats_command,
    sync_command,
)
from .context import LibraryContext


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level (defaults to OPENSTREAM_LOG_LEVEL)",
)
@click.option("--log-file", type=click.Path(), help="Log to file")
@click.version_option(package_name="openstream")
@click.pass_context
def cli(ctx: Any, log_level: Optional[str], log_file: Optional[str]) -> None:
    """OpenStream local music library.

    Keeps the songs folder and the catalog in agreement.
    """
    config = Config()
    setup_logging(
        log_level=log_level or config.log_level,
        log_file=Path(log_file) if log_file else None,
    )
    configure_third_party_loggers()

    library_context = LibraryContext(config)
    ctx.obj = library_context
    ctx.call_on_close(library_context.close)


cli.add_command(sync_command)
cli.add_command(import_command)
cli.add_command(songs_command)
cli.add_command(albums_command)
cli.add_command(delete_command)
cli.add_command(locate_command)
cli.add_command(settings_command)
cli.add_command(stats_command)


if __name__ == "__main__":
    cli()
