"""
Advisory lock for the data directory.

Lock file is created with O_CREAT|O_EXCL so only one invocation can hold it.
Contents (JSON) identify the holder:

{
    "pid": 12345,
    "hostname": "laptop",
    "operation": "save",
    "acquired_at": "2025-11-28T14:05:30+00:00"
}

There is no stale-lock recovery: a lock left behind by a killed process has to
be removed by hand, and the error message says which file.
"""

import json
import logging
import os
import socket
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ..errors import LockHeldError, StorageError

logger = logging.getLogger(__name__)


class AdvisoryLock:
    """Exclusive-create lock file."""

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def holder(self) -> Optional[Dict[str, Any]]:
        """Read the current holder record, if any."""
        try:
            record = json.loads(self.lock_path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            return {}
        return record if isinstance(record, dict) else {}

    def acquire(self, operation: str = "") -> None:
        """
        Acquire the lock or fail immediately.

        Raises:
            LockHeldError: If another invocation holds the lock
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        record = {
            "pid": os.getpid(),
            "hostname": socket.gethostname(),
            "operation": operation,
            "acquired_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            holder = self.holder() or {}
            who = f"pid {holder.get('pid', '?')} ({holder.get('operation') or 'unknown'})"
            raise LockHeldError(
                f"locked by {who}; remove the file if that process is gone",
                subject=str(self.lock_path),
            )
        except OSError as e:
            raise StorageError(f"cannot create lock: {e.strerror}",
                               subject=str(self.lock_path), cause=e)

        try:
            with os.fdopen(fd, "w") as f:
                json.dump(record, f)
        except OSError as e:
            self.lock_path.unlink()
            raise StorageError(f"cannot write lock: {e.strerror}",
                               subject=str(self.lock_path), cause=e)
        self._held = True
        logger.debug("Lock acquired for %s: %s", operation or "operation", self.lock_path)

    def release(self) -> None:
        if not self._held:
            return
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            logger.warning("Lock file vanished before release: %s", self.lock_path)
        self._held = False
        logger.debug("Lock released: %s", self.lock_path)


@contextmanager
def locked(lock_path: Path, operation: str = "") -> Iterator[AdvisoryLock]:
    """Hold the data directory lock for the duration of the block."""
    lock = AdvisoryLock(lock_path)
    lock.acquire(operation)
    try:
        yield lock
    finally:
        lock.release()
