"""Logging setup for errlens.

Console output goes through Rich by default so log lines sit nicely next to
the shell's panels. Set ERRLENS_RICH=0 for plain stream output (CI, pipes).
"""

import logging
import os

from rich.logging import RichHandler

_PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "WARNING", rich: bool | None = None) -> None:
    """
    Configure the root logger. Safe to call more than once.

    Args:
        level: Standard logging level name
        rich: Force Rich on/off; defaults to the ERRLENS_RICH env var
    """
    if rich is None:
        rich = os.environ.get("ERRLENS_RICH", "1") != "0"

    if rich:
        handler: logging.Handler = RichHandler(
            rich_tracebacks=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())


__all__ = ["configure_logging"]
