"""Logging setup for nanofs tools."""

import logging

from rich.logging import RichHandler

from nanofs.render import console


def configure_logging(level: int = logging.INFO) -> None:
    """Route ``nanofs`` loggers through a rich handler.

    Safe to call more than once; the handler is installed a single time.
    """
    logger = logging.getLogger("nanofs")
    logger.setLevel(level)
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return

    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
