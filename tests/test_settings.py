from datetime import timedelta

import pytest

from spinline.errors import ConfigError
from spinline.settings import duration_env


def test_duration_env_default(monkeypatch):
    monkeypatch.delenv("SPINLINE_POLL_INTERVAL", raising=False)
    assert duration_env("SPINLINE_POLL_INTERVAL", "50ms") == timedelta(milliseconds=50)


def test_duration_env_override(monkeypatch):
    monkeypatch.setenv("SPINLINE_DEFAULT_TIMEOUT", "1m30s")
    assert duration_env("SPINLINE_DEFAULT_TIMEOUT", "10m") == timedelta(seconds=90)


def test_duration_env_invalid_names_variable(monkeypatch):
    monkeypatch.setenv("SPINLINE_DEFAULT_TIMEOUT", "soon")
    with pytest.raises(ConfigError, match="SPINLINE_DEFAULT_TIMEOUT"):
        duration_env("SPINLINE_DEFAULT_TIMEOUT", "10m")


@pytest.mark.parametrize("value", ["0", "0s", "-1s"])
def test_duration_env_rejects_non_positive(monkeypatch, value):
    monkeypatch.setenv("SPINLINE_POLL_INTERVAL", value)
    with pytest.raises(ConfigError, match="SPINLINE_POLL_INTERVAL must be positive"):
        duration_env("SPINLINE_POLL_INTERVAL", "50ms")
