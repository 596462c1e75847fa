"""Logging setup for the command line front end."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

__all__ = ["colorize_text", "configure_logging"]

_COLOR_CODES = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
}


def colorize_text(text: str, color: str, bold: bool = False) -> str:
    """Return *text* wrapped in ANSI color codes."""
    code = _COLOR_CODES.get(color, "0")
    style = "1;" if bold else ""
    return f"\033[{style}{code}m{text}\033[0m"


class _ColourFormatter(logging.Formatter):
    COLOURS = {
        logging.DEBUG: "blue",
        logging.INFO: "green",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
        logging.CRITICAL: "magenta",
    }

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - trivial wrapper
        message = super().format(record)
        colour = self.COLOURS.get(record.levelno, "green")
        return colorize_text(message, colour)


def configure_logging(
    verbose: bool = False,
    *,
    log_file: Optional[Path] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure root logging handlers.

    Existing root handlers are removed so repeated CLI invocations inside one
    process do not stack duplicate output.  Colour is only used when the
    stream is a terminal.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    level = logging.DEBUG if verbose else logging.INFO
    root.setLevel(level)

    target = stream if stream is not None else sys.stderr
    console = logging.StreamHandler(target)
    if getattr(target, "isatty", lambda: False)():
        console.setFormatter(_ColourFormatter("%(levelname)s: %(message)s"))
    else:
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(file_handler)
    return root
