"""Tests for settings defaults used by the ERP sync."""

from __future__ import annotations

import pytest

from src.app.config import DEFAULT_SYNC_INTERVAL_MINUTES, Settings


@pytest.mark.parametrize(
    ("configured", "expected"),
    [(None, DEFAULT_SYNC_INTERVAL_MINUTES), (0, 30), (-1, 30), (5, 5)],
)
def test_sync_interval_defaults(configured, expected):
    settings = Settings(_env_file=None, ERP_SYNC_INTERVAL_MINUTES=configured)
    assert settings.get_sync_interval_minutes() == expected


def test_interval_from_environment(monkeypatch):
    monkeypatch.setenv("ERP_SYNC_INTERVAL_MINUTES", "12")
    monkeypatch.setenv("ERP_API_BASE_URL", "https://erp.internal")

    settings = Settings(_env_file=None)

    assert settings.get_sync_interval_minutes() == 12
    assert settings.ERP_API_BASE_URL == "https://erp.internal"


@pytest.mark.parametrize("raw", ["", "  ", "abc", "1.5"])
def test_unparseable_interval_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("ERP_SYNC_INTERVAL_MINUTES", raw)

    settings = Settings(_env_file=None)

    assert settings.ERP_SYNC_INTERVAL_MINUTES is None
    assert settings.get_sync_interval_minutes() == DEFAULT_SYNC_INTERVAL_MINUTES


def test_shutdown_timeout_default():
    assert Settings(_env_file=None).ERP_SYNC_SHUTDOWN_TIMEOUT == 30.0
