"""Where the config file and its lock live.

    <home>/.micro         JSON document
    <home>/.micro.lock    zero-byte flock target

When the home directory cannot be determined, only a lock path is available:
<tempdir>/.micro.lock. There is no backing file in that case.
"""

from __future__ import annotations

import os
import pwd
import tempfile
from dataclasses import dataclass
from pathlib import Path

from microconf.errors import HomeResolutionError
from microconf.settings import DEFAULT_FILENAME, LOCK_SUFFIX


@dataclass(frozen=True)
class ConfigPaths:
    path: Path
    lock_path: Path


def home_dir() -> Path:
    """Return the current user's home directory.

    Tries $HOME first, then the passwd entry for the effective uid.
    """
    env_home = os.environ.get("HOME", "")
    if env_home:
        return Path(env_home)
    try:
        pw_dir = pwd.getpwuid(os.getuid()).pw_dir
    except KeyError as exc:
        msg = f"no passwd entry for uid {os.getuid()} and HOME is unset"
        raise HomeResolutionError(msg) from exc
    if not pw_dir:
        msg = f"passwd entry for uid {os.getuid()} has no home directory"
        raise HomeResolutionError(msg)
    return Path(pw_dir)


def resolve_paths(home: Path | str | None = None, filename: str = DEFAULT_FILENAME) -> ConfigPaths:
    """Derive (path, lock_path) from home (or the current user's home)."""
    base = Path(home) if home is not None else home_dir()
    path = base / filename
    return ConfigPaths(path=path, lock_path=path.with_name(filename + LOCK_SUFFIX))


def fallback_lock_path(filename: str = DEFAULT_FILENAME) -> Path:
    """Lock path used when no home directory is available."""
    return Path(tempfile.gettempdir()) / (filename + LOCK_SUFFIX)
