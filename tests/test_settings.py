from pathlib import Path

import pytest

from microconf.settings import DEFAULT_FILE_MODE, DEFAULT_FILENAME, LOCK_SUFFIX, Settings, load_settings


def test_defaults_from_empty_env():
    s = load_settings({})
    assert s == Settings()
    assert s.home is None
    assert s.filename == DEFAULT_FILENAME == ".micro"
    assert LOCK_SUFFIX == ".lock"
    assert s.file_mode == DEFAULT_FILE_MODE == 0o644
    assert s.log_level == "WARNING"


def test_env_overrides(tmp_path):
    s = load_settings({
        "MICROCONF_HOME": str(tmp_path),
        "MICROCONF_FILENAME": ".microtest",
        "MICROCONF_FILE_MODE": "600",
        "MICROCONF_LOG_LEVEL": "info",
    })
    assert s.home == Path(tmp_path)
    assert s.filename == ".microtest"
    assert s.file_mode == 0o600
    assert s.log_level == "INFO"


def test_blank_values_fall_back_to_defaults():
    s = load_settings({"MICROCONF_HOME": "  ", "MICROCONF_FILE_MODE": "", "MICROCONF_LOG_LEVEL": ""})
    assert s == Settings()


@pytest.mark.parametrize("raw", ["rw-r--r--", "999", "1000"])
def test_bad_file_mode(raw):
    with pytest.raises(ValueError, match="MICROCONF_FILE_MODE"):
        load_settings({"MICROCONF_FILE_MODE": raw})


@pytest.mark.parametrize("raw", ["", "a/b", "..", "."])
def test_bad_filename(raw):
    with pytest.raises(ValueError, match="MICROCONF_FILENAME"):
        load_settings({"MICROCONF_FILENAME": raw})


def test_bad_log_level():
    with pytest.raises(ValueError, match="MICROCONF_LOG_LEVEL"):
        load_settings({"MICROCONF_LOG_LEVEL": "chatty"})


def test_reads_os_environ_by_default(tmp_path, monkeypatch):
    monkeypatch.setenv("MICROCONF_HOME", str(tmp_path))
    assert load_settings().home == tmp_path
