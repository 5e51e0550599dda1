"""
Advisory file locking for the secrets file.

Readers take a shared lock, writers an exclusive one. Writers open the file
without truncating it and only truncate once the exclusive lock is held, so a
concurrent reader never sees a half-written or emptied file.
"""

import fcntl
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from crumb.exceptions import LockError, StorageIOError

logger = logging.getLogger(__name__)


@contextmanager
def _flock(handle: BinaryIO, operation: int, path: Path) -> Iterator[None]:
    """Hold an flock on an open handle, releasing it on every exit path."""
    try:
        fcntl.flock(handle.fileno(), operation)
    except OSError as e:
        raise LockError(f"Failed to lock {path}: {e}") from e

    logger.debug(f"Locked {path} ({'exclusive' if operation == fcntl.LOCK_EX else 'shared'})")
    try:
        yield
    finally:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        logger.debug(f"Unlocked {path}")


def read_file_with_lock(path: Path) -> bytes:
    """
    Read a whole file while holding a shared lock.

    Args:
        path: File to read.

    Returns:
        The file contents.

    Raises:
        LockError: If the lock cannot be acquired.
        StorageIOError: If the file cannot be opened or read.
    """
    path = Path(path)
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise StorageIOError(f"Failed to open {path}: {e}") from e

    with handle:
        with _flock(handle, fcntl.LOCK_SH, path):
            try:
                return handle.read()
            except OSError as e:
                raise StorageIOError(f"Failed to read {path}: {e}") from e


def write_file_with_lock(path: Path, data: bytes, mode: int = 0o600) -> None:
    """
    Replace a file's contents while holding an exclusive lock.

    The file is created if missing (with ``mode``), locked, and only then
    truncated and rewritten.

    Args:
        path: File to write.
        data: New contents.
        mode: Permission bits, also applied to an existing file.

    Raises:
        LockError: If the lock cannot be acquired.
        StorageIOError: If the file cannot be opened or written.
    """
    path = Path(path)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT, mode)
        handle = os.fdopen(fd, "wb")
    except OSError as e:
        raise StorageIOError(f"Failed to open {path}: {e}") from e

    with handle:
        with _flock(handle, fcntl.LOCK_EX, path):
            try:
                handle.truncate(0)
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            except OSError as e:
                raise StorageIOError(f"Failed to write {path}: {e}") from e

    try:
        os.chmod(path, mode)
    except OSError:
        logger.warning(f"Could not set permissions on {path}")
