"""Налаштування хост-раннера графіка (pydantic-settings).

Шлях: ``app/settings.py``

Ядро (``chart_core``) ENV не читає: усе, що тут, хост передає явно у
``ChartApiClient`` та ``ChartCoreConfig``. Дефолти тягнемо з
``config.config`` як єдиного джерела правди.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.env import select_env_file
from config.config import (
    DEFAULT_MARKER_MODE,
    HTTP_TIMEOUT_SEC,
    MARKER_MODES,
    POLL_INTERVAL_SEC,
)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
logger = logging.getLogger("app.settings")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_ENV_FILE = select_env_file(_PROJECT_ROOT)
load_dotenv(_ENV_FILE)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",  # ігноруємо невідомі змінні замість ValidationError
    )

    chart_api_base_url: str = "http://localhost:3001"
    chart_api_token: str | None = None
    chart_http_timeout_sec: float = HTTP_TIMEOUT_SEC
    chart_marker_mode: str = DEFAULT_MARKER_MODE
    chart_poll_interval_sec: float = POLL_INTERVAL_SEC
    log_level: str = "INFO"

    @field_validator("chart_api_base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, v):  # type: ignore[no-untyped-def]
        if v is None:
            return "http://localhost:3001"
        value = str(v).strip().rstrip("/")
        return value or "http://localhost:3001"

    @field_validator("chart_api_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, v):  # type: ignore[no-untyped-def]
        # Порожній CHART_API_TOKEN= у env-файлі означає "без авторизації".
        token = str(v).strip() if v is not None else ""
        return token or None

    @field_validator("chart_marker_mode", mode="before")
    @classmethod
    def _normalize_marker_mode(cls, v):  # type: ignore[no-untyped-def]
        value = str(v or DEFAULT_MARKER_MODE).strip().lower()
        if value not in MARKER_MODES:
            raise ValueError(f"chart_marker_mode має бути одним із {sorted(MARKER_MODES)}")
        return value

    @field_validator("chart_http_timeout_sec", "chart_poll_interval_sec")
    @classmethod
    def _positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("значення в секундах має бути > 0")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):  # type: ignore[no-untyped-def]
        value = str(v or "INFO").strip().upper()
        return value if value in logging.getLevelNamesMapping() else "INFO"


settings = Settings()

__all__ = ["Settings", "settings"]
