"""
Inter-process locking for the state file.

Uses OS-level file locking on a sibling ``.lock`` file:
- Unix (macOS/Linux): fcntl.flock()
- Windows: msvcrt.locking()

The lock is released by the OS when the holding process exits, so a crashed
CLI call never leaves the ledger locked.
"""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

# msvcrt locks a byte range, not the whole file
_WINDOWS_LOCK_BYTES = 32


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextmanager
def locked(path: Path, shared: bool = False) -> Iterator[None]:
    """Hold a blocking lock on ``path`` for the duration of the block.

    ``shared`` takes a read lock where the platform supports one. Windows
    only offers exclusive locks.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = open(path, "a+b")
    try:
        if sys.platform == "win32":
            import msvcrt

            handle.seek(0)
            # LK_LOCK retries for about ten seconds before raising OSError
            msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, _WINDOWS_LOCK_BYTES)
            try:
                yield
            finally:
                handle.seek(0)
                msvcrt.locking(
                    handle.fileno(), msvcrt.LK_UNLCK, _WINDOWS_LOCK_BYTES
                )
        else:
            import fcntl

            fcntl.flock(handle.fileno(), fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
            mode = "shared" if shared else "exclusive"
            logger.debug("Acquired %s lock on %s", mode, path)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        handle.close()
