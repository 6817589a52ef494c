"""Logging setup for the command line."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug_log: Optional[Path] = None, verbose: bool = False) -> None:
    """Send warnings to stderr and everything to the debug log, if given."""
    root = logging.getLogger("focus_ledger")
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(console)

    if debug_log is not None:
        debug_log.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(debug_log, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)
