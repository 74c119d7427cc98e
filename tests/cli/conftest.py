"""Fixtures for CLI tests."""

import logging

import pytest
from typer.testing import CliRunner

from keycloak_user_sync.core.config import SETTING_SOURCES


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for _, env_name in SETTING_SOURCES.values():
        monkeypatch.delenv(env_name, raising=False)
