import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# the TUI owns stdout, so log records go to stderr
_console = Console(stderr=True)


class PaddedNameFormatter(logging.Formatter):
    """
    Pads logger names to the widest one seen so far, so messages line up
    across the gateway, stores and views.
    """

    name_width = 12

    def format(self, record):
        PaddedNameFormatter.name_width = max(
            PaddedNameFormatter.name_width, len(record.name)
        )
        record.name = record.name.center(PaddedNameFormatter.name_width)
        return super().format(record)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through a RichHandler.
    Level is DEBUG when the DEBUG env var is set, INFO otherwise.
    """
    name = name or "storefront"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_console,
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(PaddedNameFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' ready.")

    return logger
