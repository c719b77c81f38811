"""Single-instance guard backed by an exclusive pid file."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from types import TracebackType
from typing import Final

from batmond.errors import LockError

logger: Final = logging.getLogger(__name__)


def is_pid_alive(pid: int) -> bool:
    """Return True if a process with *pid* exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False
    return True


def read_lock_pid(lock_path: Path) -> int | None:
    """Return the pid stored in a lock file, or None if unreadable."""
    try:
        raw = lock_path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class InstanceLock:
    """Prevents two daemons from running against the same app directory.

    The lock file is created with ``O_CREAT | O_EXCL`` and holds the pid of
    the owner. A lock left behind by a process that no longer exists is
    considered stale and is reclaimed.

    Examples:
        with InstanceLock(paths.lock_file):
            scheduler.run()
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.acquired = False

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            LockError: If another live process holds it or the file
                cannot be written
        """
        try:
            self._create()
        except FileExistsError:
            pid = read_lock_pid(self.path)
            if pid is not None and pid != os.getpid() and is_pid_alive(pid):
                raise LockError(self.path, f"held by pid {pid}", pid=pid) from None
            logger.info("Reclaiming stale lock %s (pid %s)", self.path, pid)
            try:
                self.path.unlink(missing_ok=True)
                self._create()
            except OSError as exc:
                raise LockError(self.path, str(exc)) from exc
        except OSError as exc:
            raise LockError(self.path, str(exc)) from exc

        self.acquired = True
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        """Remove the lock file if this instance owns it."""
        if not self.acquired:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove lock %s: %s", self.path, exc)
        self.acquired = False

    def _create(self) -> None:
        fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(str(os.getpid()))

    def __enter__(self) -> InstanceLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
