"""Store: the locked local config store.

    store = Store()                      # reads ~/.micro once, under the lock
    store.get("db", "password")          # "" when absent, never raises
    store.set("hunter2", "db", "password")
    with store.locked():                 # bracket a longer read-modify-write
        token = store.get("auth", "token")
        ...
        store.set(new_token, "auth", "token")

Every mutation is lock -> reload from disk -> mutate a copy -> write the whole
document (temp file + rename) -> swap the copy in -> unlock. Concurrent writers
in other processes therefore never lose each other's keys, and the in-memory
tree only ever holds something that was successfully loaded or written.

Construction never fails: a missing home, an unreadable or corrupt file or a
lock failure all degrade to an empty tree and are recorded in errors().
"""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from typing import TYPE_CHECKING, Any

from microconf.errors import (
    ConfigStoreError,
    FileIOError,
    HomeResolutionError,
    LockAcquisitionError,
    ParseError,
)
from microconf.lock import FileLock
from microconf.paths import fallback_lock_path, resolve_paths
from microconf.settings import Settings, load_settings
from microconf.tree import ConfigTree, check_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

logger = logging.getLogger("microconf.store")


class Store:
    """Config tree backed by one JSON file and one flock'd sidecar."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self._on_error = on_error
        self._errors: list[str] = []
        self._tree = ConfigTree()
        self.path: Path | None = None

        if settings is None:
            try:
                settings = load_settings()
            except ValueError as exc:
                settings = Settings()
                self._record(f"{exc}; using default settings")
        self.settings = settings

        try:
            paths = resolve_paths(self.settings.home, self.settings.filename)
        except HomeResolutionError as exc:
            self.lock_path = fallback_lock_path(self.settings.filename)
            self._lock = FileLock(self.lock_path)
            self._record(f"home directory unavailable, config kept in memory: {exc}")
            return

        self.path = paths.path
        self.lock_path = paths.lock_path
        self._lock = FileLock(self.lock_path)
        self._initial_load()

    def __repr__(self) -> str:
        return f"Store(path={str(self.path)!r}, keys={len(self._tree)})"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, *path: str) -> str:
        """Whitespace-trimmed value at path; "" when any segment is absent."""
        return self._tree.get(check_path(path)).strip()

    def set(self, value: str, *path: str) -> None:
        """Write value at path and persist the whole document.

        Raises LockAcquisitionError, FileIOError or SerializationError; the
        file is left untouched on failure. Without a backing file (no home
        directory) the value only lives in memory and a diagnostic is recorded.
        """
        keys = check_path(path)
        if not isinstance(value, str):
            msg = f"config values are strings, got {type(value).__name__}"
            raise TypeError(msg)

        if self.path is None:
            self._tree.set(keys, value)
            self._record(f"no config file; {'.'.join(keys)} kept in memory only")
            return

        def _apply(tree: ConfigTree) -> bool:
            tree.set(keys, value)
            return True

        self._mutate("set", keys, _apply)

    def delete(self, *path: str) -> bool:
        """Remove path from the document. Returns False if it was absent."""
        keys = check_path(path)
        if self.path is None:
            return self._tree.delete(keys)
        return self._mutate("delete", keys, lambda tree: tree.delete(keys))

    def lock(self) -> None:
        """Take the cross-process lock and resync the tree from disk.

        Blocks until the lock is free. On a read failure the lock is released
        again before FileIOError is raised.
        """
        try:
            self._lock.acquire()
        except LockAcquisitionError as exc:
            self._record(str(exc))
            raise
        try:
            self._resync()
        except FileIOError as exc:
            self._lock.release()
            self._record(str(exc))
            raise

    def unlock(self) -> None:
        """Release the lock taken by lock(). Safe to call when not held."""
        self._lock.release()

    @contextlib.contextmanager
    def locked(self) -> Iterator[Store]:
        """lock() ... unlock() as a context manager."""
        self.lock()
        try:
            yield self
        finally:
            self.unlock()

    def reload(self) -> None:
        """Resync the in-memory tree from disk under the lock."""
        with self.locked():
            pass

    def errors(self) -> list[str]:
        """All diagnostics recorded so far (oldest first). Not cleared."""
        return list(self._errors)

    def as_dict(self) -> dict[str, Any]:
        """Deep copy of the current in-memory document."""
        return self._tree.as_dict()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record(self, message: str) -> None:
        self._errors.append(message)
        logger.warning("%s", message)
        if self._on_error is not None:
            try:
                self._on_error(message)
            except Exception:
                logger.exception("on_error callback failed")

    def _initial_load(self) -> None:
        try:
            self._lock.acquire()
        except LockAcquisitionError as exc:
            self._record(f"{exc}; starting with empty config")
            return
        try:
            self._tree = self._read_disk(create=True)
            logger.info("loaded %s (%d top-level keys)", self.path, len(self._tree))
        except (FileIOError, ParseError) as exc:
            self._record(f"{exc}; starting with empty config")
        finally:
            self._lock.release()

    def _read_disk(self, *, create: bool) -> ConfigTree:
        """Parse the file. Missing file is an empty tree (created if asked)."""
        assert self.path is not None
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            if create:
                self._create_empty()
            return ConfigTree()
        except OSError as exc:
            msg = f"cannot read {self.path}: {exc}"
            raise FileIOError(msg) from exc
        return ConfigTree.load(data)

    def _create_empty(self) -> None:
        assert self.path is not None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, self.settings.file_mode)
        except FileExistsError:
            return
        except OSError as exc:
            msg = f"cannot create {self.path}: {exc}"
            raise FileIOError(msg) from exc
        os.close(fd)
        logger.info("created empty config file %s", self.path)

    def _resync(self) -> None:
        """Reload from disk. Caller holds the lock.

        A corrupt file keeps the current tree (the next write repairs it).
        """
        if self.path is None:
            return
        try:
            self._tree = self._read_disk(create=False)
        except ParseError as exc:
            self._record(f"{exc}; keeping in-memory config")

    def _mutate(
        self,
        op: str,
        keys: tuple[str, ...],
        apply: Callable[[ConfigTree], bool],
    ) -> bool:
        """lock -> resync -> apply to a copy -> write -> swap in -> unlock."""
        try:
            with self._lock.hold():
                self._resync()
                candidate = ConfigTree(self._tree.as_dict())
                if not apply(candidate):
                    return False
                self._write(candidate.serialize())
                self._tree = candidate
        except ConfigStoreError as exc:
            self._record(f"{op} {'.'.join(keys)}: {exc}")
            raise
        logger.info("%s %s", op, ".".join(keys))
        return True

    def _write(self, data: bytes) -> None:
        """Replace the file with data via temp file + rename. Caller holds the lock."""
        assert self.path is not None
        target = self.path.resolve()
        tmp = target.with_name(target.name + ".tmp")
        try:
            with tmp.open("wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            tmp.chmod(self.settings.file_mode)
            tmp.replace(target)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            msg = f"cannot write {self.path}: {exc}"
            raise FileIOError(msg) from exc


# ---------------------------------------------------------------------------
# Process default
# ---------------------------------------------------------------------------

# Mutable container so the lazily built default needs no `global`.
_default: list[Store] = []
_default_guard = threading.Lock()


def default_store() -> Store:
    """Process-wide Store, built from the environment on first use."""
    with _default_guard:
        if not _default:
            _default.append(Store())
        return _default[0]
