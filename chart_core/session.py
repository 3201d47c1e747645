"""Явний контекст однієї сесії графіка (symbol, timeframe).

Усі сутності сесії (серія свічок, оверлеї, маркери, viewport, статус) живуть
тут і більше ніде. Зміна символу чи таймфрейму створює нову сесію з новим
``generation``; стара сесія просто відкидається разом з усім графом.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from chart_core.status import INITIALIZING, ChartStatus
from chart_core.viewport import ViewportState
from chart_indicators import OverlaySeries
from core.contracts.chart import Candle, Marker, VolumePoint
from data.acquisition import IntervalAttempt

logger = logging.getLogger("chart_core.session")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass(slots=True)
class ChartSession:
    symbol: str
    timeframe: str
    generation: int
    intervals: tuple[str, ...]
    status: ChartStatus = INITIALIZING
    active_interval: str | None = None
    candles: list[Candle] = field(default_factory=list)
    volume: list[VolumePoint] = field(default_factory=list)
    overlays: OverlaySeries = field(default_factory=OverlaySeries)
    markers: list[Marker] = field(default_factory=list)
    viewport: ViewportState | None = None
    rendered_once: bool = False
    acquiring: bool = False  # fetch пайплайну в польоті
    attempts: tuple[IntervalAttempt, ...] = ()

    def set_status(self, new: ChartStatus) -> bool:
        """Переводить сесію в ``new``; недозволений перехід лише логуємо."""

        if not self.status.can_transition_to(new):
            logger.warning(
                "[ChartCore] %s: недозволений перехід %s -> %s (gen=%d)",
                self.symbol,
                self.status,
                new,
                self.generation,
            )
            return False
        logger.debug(
            "[ChartCore] %s: %s -> %s (gen=%d)",
            self.symbol,
            self.status,
            new,
            self.generation,
        )
        self.status = new
        return True

    def candle_times(self) -> frozenset[int]:
        return frozenset(c["time"] for c in self.candles)

    @property
    def last_candle_time(self) -> int | None:
        return self.candles[-1]["time"] if self.candles else None


__all__ = ["ChartSession"]
