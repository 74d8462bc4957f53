"""
LC-3 Virtual Emulator — Logging Setup

All emulator modules log under the ``lc3`` logger hierarchy
(lc3.emu, lc3.traps, lc3.loader, lc3.cli). This module configures that
hierarchy once for command-line use:

  console  RichHandler on stderr (stdout belongs to the emulated program)
  file     optional, DEBUG and up, pipe-separated columns

Library users who never call setup_logging() get standard logging
propagation and can configure handlers themselves.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from rich.console import Console as RichConsole
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "lc3",
    console_level: int = logging.WARNING,
    log_file: Optional[Union[str, Path]] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """
    Configure and return the ``name`` logger.

    Calling it again for the same name returns the already-configured
    logger without adding handlers.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)

    # ── Console handler: only important stuff (WARNING+ default) ──
    if rich_console:
        ch = RichHandler(
            console=RichConsole(stderr=True),
            level=console_level,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S",
        ))
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_path)

    return logger


def reset_logging(name: str = "lc3"):
    """Detach and close every handler setup_logging() added."""
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
