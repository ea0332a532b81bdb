"""Tests for the settings loader."""
from __future__ import annotations

from pathlib import Path
from shutil import copyfile

import pytest
from pydantic import ValidationError

from courierdesk.settings import AppSettings


def test_env_example_loads_defaults(tmp_path) -> None:
    project_root = Path(__file__).resolve().parent.parent
    copyfile(project_root / ".env.example", tmp_path / ".env")

    settings = AppSettings()

    assert settings.app_brand == "Delivery Panel"
    assert settings.poll_interval_sec == 10
    assert settings.active_filter == "accepted"
    assert settings.change_detection == "count"
    assert settings.notify_enabled is True
    assert settings.notify_player is None


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("ACTIVE_FILTER", "non_terminal")
    monkeypatch.setenv("POLL_INTERVAL_SEC", "2.5")
    settings = AppSettings()
    assert settings.active_filter == "non_terminal"
    assert settings.poll_interval_sec == 2.5


def test_rejects_unknown_filter(monkeypatch) -> None:
    monkeypatch.setenv("ACTIVE_FILTER", "everything")
    with pytest.raises(ValidationError):
        AppSettings()
