"""Mutual exclusion between ticks using a pid file.

Creating the pid file is not atomic. Instead the file is written and read
back: if the content differs, another tick wrote it in between and owns
the lock.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path

import psutil

from synccron.core.errors import BadLockFileError

logger = logging.getLogger(__name__)

_PID = re.compile(r"^[0-9]+$")

# Largest pid_max Linux allows; larger values cannot name a process
PID_MAX = 2**22


class LockStatus(Enum):
    """Result of trying to take the lock."""

    ACQUIRED = "acquired"
    ALREADY_RUNNING = "already_running"


class InstanceLock:
    """Lock held by at most one live process per target directory."""

    def __init__(
        self,
        path: Path,
        is_alive: Callable[[int], bool] = psutil.pid_exists,
    ) -> None:
        """Initialize the lock.

        Args:
            path: Path of the pid file.
            is_alive: Predicate telling whether a pid belongs to a live process.
        """
        self._path = Path(path)
        self._is_alive = is_alive
        self._owner: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._owner is not None

    def _read_owner(self) -> int | None:
        """Read the pid in the lock file.

        Returns:
            The pid, or None if there is no lock file.

        Raises:
            BadLockFileError: If the file does not hold a pid.
        """
        try:
            content = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise BadLockFileError(f"bad PID file: {self._path}") from e

        if not _PID.match(content) or not 0 < int(content) <= PID_MAX:
            logger.debug(f"Lock file does not contain a PID: {self._path}")
            raise BadLockFileError(f"bad PID file: {self._path}")
        return int(content)

    def try_acquire(self, pid: int) -> LockStatus:
        """Try to take the lock for process ``pid``.

        A lock file naming a dead process is stale and is removed.

        Raises:
            BadLockFileError: If the existing lock file is malformed. The
                file is left in place.
        """
        owner = self._read_owner()
        if owner is not None:
            if self._is_alive(owner):
                logger.info(f"Another process is already running (PID {owner})")
                return LockStatus.ALREADY_RUNNING
            logger.info(f"Removing stale lock file of PID {owner}")
            self._path.unlink(missing_ok=True)

        self._path.write_text(f"{pid}\n", encoding="utf-8")

        try:
            saved = self._read_owner()
        except BadLockFileError:
            # Another writer raced us mid-write; the file is theirs
            saved = None
        if saved != pid:
            logger.info("Lost race for lock file, another process is already running")
            return LockStatus.ALREADY_RUNNING

        self._owner = pid
        logger.debug(f"Acquired lock {self._path} for PID {pid}")
        return LockStatus.ACQUIRED

    def release(self) -> None:
        """Remove the lock file, if this instance holds the lock."""
        if self._owner is None:
            return
        self._path.unlink(missing_ok=True)
        logger.debug(f"Released lock {self._path}")
        self._owner = None
