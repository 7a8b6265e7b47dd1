import tempfile
from pathlib import Path

import pytest

from microconf import paths
from microconf.errors import HomeResolutionError
from microconf.paths import fallback_lock_path, home_dir, resolve_paths


def test_resolve_paths_under_home(home):
    p = resolve_paths()
    assert p.path == home / ".micro"
    assert p.lock_path == home / ".micro.lock"


def test_resolve_paths_explicit_home_and_name(tmp_path):
    p = resolve_paths(tmp_path, ".other")
    assert p.path == tmp_path / ".other"
    assert p.lock_path == tmp_path / ".other.lock"


def test_home_falls_back_to_passwd(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)

    class _Entry:
        pw_dir = "/home/someone"

    monkeypatch.setattr(paths.pwd, "getpwuid", lambda uid: _Entry())
    assert home_dir() == Path("/home/someone")


def test_no_home_raises(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)

    def _missing(uid):
        raise KeyError(uid)

    monkeypatch.setattr(paths.pwd, "getpwuid", _missing)
    with pytest.raises(HomeResolutionError):
        home_dir()
    with pytest.raises(HomeResolutionError):
        resolve_paths()


def test_empty_passwd_home_raises(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)

    class _Entry:
        pw_dir = ""

    monkeypatch.setattr(paths.pwd, "getpwuid", lambda uid: _Entry())
    with pytest.raises(HomeResolutionError):
        home_dir()


def test_fallback_lock_path_in_tempdir():
    assert fallback_lock_path() == Path(tempfile.gettempdir()) / ".micro.lock"


def test_lock_follows_configured_filename(home):
    p = resolve_paths(filename=".microtest")
    assert p.lock_path == home / ".microtest.lock"
    assert fallback_lock_path(".microtest").name == ".microtest.lock"
