from __future__ import annotations

import pytest

from courierdesk.core.metrics import METRICS
from courierdesk.settings import AppSettings, get_settings


@pytest.fixture(autouse=True)
def _isolated_runtime(tmp_path, monkeypatch):
    # runtime/logs is created relative to the working directory.
    monkeypatch.chdir(tmp_path)
    METRICS.reset()
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        api_base_url="http://orders.test",
        poll_interval_sec=60.0,
        notify_enabled=False,
    )
