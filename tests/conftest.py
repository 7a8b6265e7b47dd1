from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest

from microconf.settings import Settings

SRC_DIR = Path(__file__).resolve().parents[1] / "src"


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated home directory with no MICROCONF_* overrides."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    for key in list(os.environ):
        if key.startswith("MICROCONF_"):
            monkeypatch.delenv(key)
    return home_dir


@pytest.fixture
def settings(home):
    return Settings(home=home)


@pytest.fixture
def spawn(home):
    """Run a Python snippet in a fresh interpreter with HOME pointed at `home`."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("MICROCONF_")}
    env["HOME"] = str(home)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH", "")]))
    procs: list[subprocess.Popen] = []

    def _spawn(code: str, **kwargs) -> subprocess.Popen:
        proc = subprocess.Popen([sys.executable, "-c", code], env=env, text=True, **kwargs)
        procs.append(proc)
        return proc

    yield _spawn

    for proc in procs:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
