"""Константи та базовий конфіг для ядра графіка."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from config.config import (
    BOLLINGER_MULT,
    BOLLINGER_PERIOD,
    DEFAULT_INTERVALS,
    DEFAULT_MARKER_MODE,
    INITIAL_FETCH_DELAY_SEC,
    MARKER_RETRY_ATTEMPTS,
    MARKER_RETRY_DELAY_SEC,
    MIN_VALID_POINTS,
    POLL_INTERVAL_SEC,
    RESIZE_DEBOUNCE_SEC,
    TIMEFRAME_INTERVALS,
    VIEWPORT_MAX_BARS,
)


@dataclass(frozen=True, slots=True)
class ChartCoreConfig:
    """Налаштування життєвого циклу однієї сесії графіка."""

    min_valid_points: int = MIN_VALID_POINTS  # Поріг валідних точок (строго >)
    initial_fetch_delay_sec: float = INITIAL_FETCH_DELAY_SEC  # Пауза після створення поверхні
    viewport_max_bars: int = VIEWPORT_MAX_BARS  # Скільки останніх свічок показати на старті
    resize_debounce_sec: float = RESIZE_DEBOUNCE_SEC  # Затримка resize після fullscreen
    marker_retry_attempts: int = MARKER_RETRY_ATTEMPTS
    marker_retry_delay_sec: float = MARKER_RETRY_DELAY_SEC
    marker_mode: str = DEFAULT_MARKER_MODE  # enhanced | basic
    poll_interval_sec: float = POLL_INTERVAL_SEC  # Live-оновлення
    bb_period: int = BOLLINGER_PERIOD
    bb_mult: float = BOLLINGER_MULT
    timeframe_intervals: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(TIMEFRAME_INTERVALS)
    )

    def intervals_for(self, timeframe: str) -> tuple[str, ...]:
        """Кандидати інтервалів для таймфрейму (невідомий -> дефолтні)."""

        return tuple(self.timeframe_intervals.get(timeframe, DEFAULT_INTERVALS))


CHART_CORE_CONFIG = ChartCoreConfig()
