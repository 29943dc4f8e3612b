"""Logging setup for the markpage command line."""

from __future__ import annotations

import logging
import sys
from typing import Optional

PLAIN_FORMAT = "%(levelname)s: %(message)s"
TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def configure_logging(level: int, log_file: Optional[str] = None, trace_mode: bool = False) -> None:
    """Route log records to stderr and, optionally, to a file.

    Parameters
    ----------
    level : int
        Numeric logging level for the root logger and its handlers
    log_file : str, optional
        File that receives a copy of every record (appended)
    trace_mode : bool, default False
        Prefix records with timestamps and logger names, and let httpx log
        its requests

    Raises
    ------
    OSError
        If ``log_file`` cannot be opened

    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    formatter = logging.Formatter(TRACE_FORMAT if trace_mode else PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    if not trace_mode:
        logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
