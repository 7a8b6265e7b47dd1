"""Cross-process exclusive lock on a sidecar file.

FileLock wraps flock(LOCK_EX) on a descriptor opened for the lock path.
The kernel drops the lock when the descriptor is closed, including when the
holding process dies, so a crashed holder never blocks anyone for long.
There are no timeouts.

Within one process the lock is reentrant for the owning thread: nested
acquire()/release() pairs only touch the OS lock at the outermost level.
Other threads using the same FileLock wait on an RLock; separate FileLock
objects on the same path exclude each other through flock itself.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from microconf.errors import LockAcquisitionError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("microconf.lock")

_LOCK_FILE_MODE = 0o644


class FileLock:
    """Advisory exclusive lock bound to a single lock-file path."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._guard = threading.RLock()
        self._fd: int | None = None
        self._depth = 0
        self._owner: int | None = None

    def __repr__(self) -> str:
        return f"FileLock({str(self.path)!r}, held={self.held})"

    @property
    def held(self) -> bool:
        """True if the calling thread holds the lock."""
        return self._depth > 0 and self._owner == threading.get_ident()

    def acquire(self) -> None:
        """Block until the lock is held. Creates the lock file if needed."""
        self._guard.acquire()
        if self._depth == 0:
            try:
                self._fd = self._lock_fd(blocking=True)
            except BaseException:
                self._guard.release()
                raise
            self._owner = threading.get_ident()
        self._depth += 1

    def try_acquire(self) -> bool:
        """Take the lock if nobody else holds it. Never blocks on flock."""
        if not self._guard.acquire(blocking=False):
            return False
        if self._depth == 0:
            try:
                fd = self._lock_fd(blocking=False)
            except BaseException:
                self._guard.release()
                raise
            if fd is None:
                self._guard.release()
                return False
            self._fd = fd
            self._owner = threading.get_ident()
        self._depth += 1
        return True

    def release(self) -> None:
        """Release one level of the lock. No-op if the caller does not hold it."""
        if not self.held:
            return
        self._depth -= 1
        if self._depth == 0:
            fd, self._fd, self._owner = self._fd, None, None
            if fd is not None:
                self._unlock_fd(fd)
        self._guard.release()

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()

    @contextlib.contextmanager
    def hold(self) -> Iterator[FileLock]:
        """Context manager form of acquire()/release()."""
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    # ------------------------------------------------------------------
    # OS layer
    # ------------------------------------------------------------------

    def _lock_fd(self, *, blocking: bool) -> int | None:
        """Open the lock file and flock it. None means busy (non-blocking only)."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, _LOCK_FILE_MODE)
        except OSError as exc:
            msg = f"cannot open lock file {self.path}: {exc}"
            raise LockAcquisitionError(msg) from exc

        flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
        try:
            fcntl.flock(fd, flags)
        except BlockingIOError:
            os.close(fd)
            return None
        except OSError as exc:
            os.close(fd)
            msg = f"cannot lock {self.path}: {exc}"
            raise LockAcquisitionError(msg) from exc
        logger.debug("locked %s", self.path)
        return fd

    def _unlock_fd(self, fd: int) -> None:
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        except OSError:
            # close() below drops the lock regardless
            logger.warning("flock(LOCK_UN) failed on %s", self.path, exc_info=True)
        finally:
            os.close(fd)
        logger.debug("unlocked %s", self.path)
