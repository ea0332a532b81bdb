"""Environment-backed settings for courierdesk."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ActiveFilter = Literal["accepted", "non_terminal"]
ChangeStrategy = Literal["count", "ids"]


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    env_mode: str = "DEV"
    app_brand: str = "Delivery Panel"

    api_base_url: str = "http://127.0.0.1:5000"
    orders_path: str = "/api/admin/orders"
    poll_interval_sec: float = Field(default=10.0, gt=0)
    request_timeout_sec: float = Field(default=10.0, gt=0)

    active_filter: ActiveFilter = "accepted"
    change_detection: ChangeStrategy = "count"

    notify_enabled: bool = True
    notify_sound_path: str = "assets/notification.mp3"
    notify_player: str | None = None


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of application settings."""

    return AppSettings()
