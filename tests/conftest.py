import os

import pytest

from sofie import config

DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), "..", "config", "default.json")


@pytest.fixture(autouse=True)
def repo_config(monkeypatch):
    """Pin every test to the repo's default.json, whatever is on the host."""
    monkeypatch.setenv(config.CONFIG_ENV, DEFAULT_CONFIG)
    monkeypatch.delenv("NOTIFY_SOCKET", raising=False)
    config.reload_config()
    yield
    config.reload_config()
