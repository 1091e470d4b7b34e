from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route all bbreview logging through rich.

    Called once from the CLI entry point; library code only ever uses
    ``logging.getLogger(__name__)``.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # urllib3 debug lines would repeat every Bitbucket request.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
