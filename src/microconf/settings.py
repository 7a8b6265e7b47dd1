"""Settings: how the store itself is configured.

All values come from the environment; nothing is read from the config file
the store manages.

    MICROCONF_HOME        override the home directory (default: user's home)
    MICROCONF_FILENAME    data file name (default: .micro, lock is <name>.lock)
    MICROCONF_FILE_MODE   octal mode for the data file (default: 644)
    MICROCONF_LOG_LEVEL   CLI log level (default: WARNING)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_FILENAME = ".micro"
LOCK_SUFFIX = ".lock"
DEFAULT_FILE_MODE = 0o644
DEFAULT_LOG_LEVEL = "WARNING"

_ENV_HOME = "MICROCONF_HOME"
_ENV_FILENAME = "MICROCONF_FILENAME"
_ENV_FILE_MODE = "MICROCONF_FILE_MODE"
_ENV_LOG_LEVEL = "MICROCONF_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """Resolved store settings."""

    home: Path | None = None            # None = resolve from the current user
    filename: str = DEFAULT_FILENAME
    file_mode: int = DEFAULT_FILE_MODE
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_mode(raw: str) -> int:
    try:
        mode = int(raw, 8)
    except ValueError:
        msg = f"{_ENV_FILE_MODE} must be an octal file mode, got {raw!r}"
        raise ValueError(msg) from None
    if not 0 <= mode <= 0o777:
        msg = f"{_ENV_FILE_MODE} out of range: {raw!r}"
        raise ValueError(msg)
    return mode


def _parse_filename(raw: str) -> str:
    if not raw or os.sep in raw or raw in (".", ".."):
        msg = f"{_ENV_FILENAME} must be a plain file name, got {raw!r}"
        raise ValueError(msg)
    return raw


def _parse_level(raw: str) -> str:
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        msg = f"{_ENV_LOG_LEVEL} is not a logging level: {raw!r}"
        raise ValueError(msg)
    return level


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from env (defaults to os.environ)."""
    env = os.environ if env is None else env

    home_raw = env.get(_ENV_HOME, "").strip()
    home = Path(home_raw).expanduser() if home_raw else None

    filename = DEFAULT_FILENAME
    if _ENV_FILENAME in env:
        filename = _parse_filename(env[_ENV_FILENAME].strip())

    file_mode = DEFAULT_FILE_MODE
    if env.get(_ENV_FILE_MODE, "").strip():
        file_mode = _parse_mode(env[_ENV_FILE_MODE].strip())

    log_level = DEFAULT_LOG_LEVEL
    if env.get(_ENV_LOG_LEVEL, "").strip():
        log_level = _parse_level(env[_ENV_LOG_LEVEL])

    return Settings(home=home, filename=filename, file_mode=file_mode, log_level=log_level)
