"""Process-wide logging configuration for CLI entry points."""

from __future__ import annotations

import logging
import sys


def setup_logging(*, debug: bool = False) -> None:
    """
    Send all logs to stderr, DEBUG when ``debug`` is set and INFO otherwise.

    Call this ONCE, before the first log record is emitted.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # Remove any pre-existing handlers to avoid duplicates.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(threadName)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ),
    )
    root.addHandler(console)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
