# src/tacmap/logging_config.py
"""
Handlers for the `tacmap` logger, used by the record and viewer tools.

Records go to stderr so `tacmap-record` can keep stdout for NDJSON.
Library modules only call logging.getLogger(__name__) and never configure.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def _handler(h: logging.Handler, level: int) -> logging.Handler:
    h.setLevel(level)
    h.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return h


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """(Re)attach tacmap handlers at `level`; `log_file`, if given, is truncated."""
    root = logging.getLogger("tacmap")
    root.setLevel(level)
    # a second call (tests, repeated main()) replaces rather than stacks handlers
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    root.addHandler(_handler(logging.StreamHandler(sys.stderr), level))
    if log_file:
        root.addHandler(_handler(logging.FileHandler(log_file, mode="w", encoding="utf-8"), level))
    root.debug("logging to stderr%s", f" and {log_file}" if log_file else "")
    return root
