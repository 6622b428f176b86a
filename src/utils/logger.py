import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from utils import config


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # grows with the longest logger name seen

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


_console: Optional[Console] = None


def _shared_console() -> Console:
    """One console, and at most one open log file, for every logger."""
    global _console
    if _console is None:
        path = config.log_file()
        if path:
            _console = Console(file=open(path, "a", encoding="utf-8"), width=120)
        else:
            _console = Console(stderr=True)
    return _console


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger that writes through RichHandler, to stderr or to the
    file named by POLIMARKET_LOG. DEBUG level when DEBUG is set.
    """
    logger = logging.getLogger(name or "polimarket")
    log_level = logging.DEBUG if config.debug_enabled() else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_shared_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{logger.name}' initialized.")

    return logger
