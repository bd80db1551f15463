"""Advisory file locking for the persisted index.

Readers and writers of the index file take an exclusive ``fcntl.flock`` on
a sibling ``.lock`` file, so at most one process touches the index at a
time and nobody observes a half-written file.
"""

import fcntl
import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 0.05


class LockError(Exception):
    """Raised when a lock cannot be acquired."""


def lock_path_for(key: Path) -> Path:
    """Return the lock file path guarding ``key``."""
    key = Path(key)
    return key.with_name(key.name + ".lock")


@contextmanager
def file_lock(
    key: Path,
    timeout: float = DEFAULT_LOCK_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> Iterator[Path]:
    """
    Hold an exclusive advisory lock keyed by ``key`` for the block's duration.

    The lock is released on every exit path, including exceptions.

    Args:
        key: Path of the resource to guard (the lock lives next to it)
        timeout: Maximum time to wait for the lock, in seconds
        poll_interval: Delay between acquisition attempts

    Raises:
        LockError: If the lock cannot be acquired within ``timeout``
    """
    lock_path = lock_path_for(key)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    deadline = time.monotonic() + timeout
    lock_file = open(lock_path, "a+")
    try:
        while True:
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except OSError as e:
                if time.monotonic() >= deadline:
                    raise LockError(
                        f"Could not acquire lock {lock_path} within {timeout}s"
                    ) from e
                time.sleep(poll_interval)

        logger.debug("Acquired lock %s (pid %d)", lock_path, os.getpid())
        try:
            yield lock_path
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            logger.debug("Released lock %s", lock_path)
    finally:
        lock_file.close()
