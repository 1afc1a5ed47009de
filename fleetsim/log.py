"""Logging setup for the fleet simulation.

All modules log through ``logging.getLogger(__name__)``. The handler installed
here renders records with rich on the shared ``CONSOLE``, the same console the
command-line runner uses for its live status table, so log lines and the table
do not garble each other.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

CONSOLE = Console()

_FORMAT = "%(message)s"
_DATE_FORMAT = "[%X]"


def setup_logging(level: int | str = logging.INFO, console: Console | None = None) -> None:
    """Install a rich handler on the root logger.

    Calling it again only updates the level; handlers are never duplicated.

    Args:
        level: Logging level name or number.
        console: Console to render on. Defaults to the shared ``CONSOLE``.
    """
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)

    if any(isinstance(h, RichHandler) for h in root.handlers):
        return

    handler = RichHandler(
        console=console or CONSOLE,
        rich_tracebacks=True,
        show_path=False,
        log_time_format=_DATE_FORMAT,
    )
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)

    # pymongo is chatty at DEBUG
    logging.getLogger("pymongo").setLevel(max(level, logging.INFO))
