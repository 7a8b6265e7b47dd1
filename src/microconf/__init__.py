"""Per-user local config store shared by independent processes.

Layout (in the user's home directory):
    .micro         JSON document, nested string-keyed objects
    .micro.lock    zero-byte flock target, created on first use

Reads come from an in-memory tree loaded once per Store.
Writes are read-modify-write under flock(LOCK_EX) on .micro.lock: reload the
document, apply the change, write the full document via temp file + rename.
The kernel drops the lock if its holder dies, so a crashed process never
leaves the others blocked.
"""

from microconf.errors import (
    ConfigStoreError,
    FileIOError,
    HomeResolutionError,
    LockAcquisitionError,
    ParseError,
    SerializationError,
)
from microconf.lock import FileLock
from microconf.paths import ConfigPaths, resolve_paths
from microconf.settings import Settings, load_settings
from microconf.store import Store, default_store
from microconf.tree import ConfigTree

__all__ = [
    "ConfigPaths",
    "ConfigStoreError",
    "ConfigTree",
    "FileIOError",
    "FileLock",
    "HomeResolutionError",
    "LockAcquisitionError",
    "ParseError",
    "SerializationError",
    "Settings",
    "Store",
    "default_store",
    "load_settings",
    "resolve_paths",
]
