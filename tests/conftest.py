"""Shared test fixtures for ExtraDrop."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from extradrop.config import get_settings
from tests.fakes import FakeClock, FakeTokenEndpoint

SETTINGS_ENV = (
    "DROPBOX_ROOT",
    "DROPBOX_ACCESS_TOKEN",
    "DROPBOX_REFRESH_TOKEN",
    "DROPBOX_CLIENT_ID",
    "DROPBOX_CLIENT_SECRET",
    "DROPBOX_TOKEN_URL",
    "DROPBOX_REFRESH_MARGIN_SECONDS",
    "DROPBOX_HTTP_TIMEOUT",
    "DROPBOX_ENVIRONMENT",
    "DROPBOX_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Isolate tests from DROPBOX_* variables and any local .env file."""
    for key in SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()
