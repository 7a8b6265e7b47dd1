"""Exception hierarchy for the local config store.

Only mutators (set/delete) and lock() raise these to callers. Everything else
is recorded as a diagnostic on the Store and degraded to an empty view.
"""

from __future__ import annotations


class ConfigStoreError(Exception):
    """Base class for all store failures."""


class HomeResolutionError(ConfigStoreError):
    """The current user's home directory could not be determined."""


class LockAcquisitionError(ConfigStoreError):
    """The OS refused or failed the advisory lock on the lock file."""


class ParseError(ConfigStoreError):
    """The on-disk document is not a JSON object."""


class SerializationError(ConfigStoreError):
    """The in-memory tree could not be turned into a non-empty document."""


class FileIOError(ConfigStoreError):
    """Reading, writing or creating the config file failed."""
