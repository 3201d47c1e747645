"""Пайплайн отримання OHLCV-серії з фолбеком по інтервалах.

Алгоритм (first-success, НЕ best-of-all):
1. Ідемо по інтервалах у порядку пріоритету.
2. Не-успішна відповідь → логуємо і переходимо до наступного інтервалу.
3. Успіх → валідуємо точки; якщо валідних СТРОГО більше за поріг - зупиняємось.
4. Якщо інтервали вичерпано - ``NoDataAvailable``. Це штатний результат
   (неліквідний символ, закритий ринок), а не виняток.

Обраний інтервал сесія фіксує як ``active_interval``; маркери мають
запитуватися саме з ним.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from prometheus_client import Counter

from config.config import MIN_VALID_POINTS
from core.contracts.chart import Candle
from data.candle_validator import validate_series
from data.chart_api import ChartApiError, ChartDataSource

logger = logging.getLogger("data.acquisition")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

CHART_CANDLE_FETCH_TOTAL = Counter(
    "chart_candle_fetch_total",
    "Кількість спроб отримати OHLCV по інтервалу",
    labelnames=("interval", "outcome"),
)


@dataclass(frozen=True, slots=True)
class IntervalAttempt:
    """Діагностика однієї спроби: статус і кількість валідних точок."""

    interval: str
    outcome: str  # accepted | insufficient | http_error | error
    raw_points: int = 0
    valid_points: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class AcquiredSeries:
    """Успіх пайплайна: інтервал і провалідована серія."""

    interval: str
    candles: list[Candle]
    attempts: tuple[IntervalAttempt, ...] = ()


@dataclass(frozen=True, slots=True)
class NoDataAvailable:
    """Усі інтервали вичерпано без досягнення порогу."""

    symbol: str
    attempts: tuple[IntervalAttempt, ...] = field(default_factory=tuple)


AcquisitionResult = AcquiredSeries | NoDataAvailable


async def acquire_candles(
    source: ChartDataSource,
    symbol: str,
    intervals: Sequence[str],
    *,
    min_points: int = MIN_VALID_POINTS,
) -> AcquisitionResult:
    """Повертає першу серію, у якій валідних точок більше за ``min_points``."""

    attempts: list[IntervalAttempt] = []
    for interval in intervals:
        try:
            raw = await source.fetch_candles(symbol, interval)
        except ChartApiError as exc:
            logger.info(
                "[ChartAcq] %s %s: не-успішна відповідь (%s), пробую наступний",
                symbol,
                interval,
                exc,
            )
            CHART_CANDLE_FETCH_TOTAL.labels(interval=interval, outcome="http_error").inc()
            attempts.append(
                IntervalAttempt(interval=interval, outcome="http_error", error=str(exc))
            )
            continue
        except Exception as exc:
            logger.warning(
                "[ChartAcq] %s %s: неочікувана помилка джерела",
                symbol,
                interval,
                exc_info=True,
            )
            CHART_CANDLE_FETCH_TOTAL.labels(interval=interval, outcome="error").inc()
            attempts.append(
                IntervalAttempt(interval=interval, outcome="error", error=str(exc))
            )
            continue

        candles = validate_series(raw)
        if len(candles) > min_points:
            CHART_CANDLE_FETCH_TOTAL.labels(interval=interval, outcome="accepted").inc()
            attempts.append(
                IntervalAttempt(
                    interval=interval,
                    outcome="accepted",
                    raw_points=len(raw),
                    valid_points=len(candles),
                )
            )
            logger.info(
                "[ChartAcq] %s: обрано інтервал %s (%d валідних із %d)",
                symbol,
                interval,
                len(candles),
                len(raw),
            )
            return AcquiredSeries(
                interval=interval, candles=candles, attempts=tuple(attempts)
            )

        CHART_CANDLE_FETCH_TOTAL.labels(interval=interval, outcome="insufficient").inc()
        attempts.append(
            IntervalAttempt(
                interval=interval,
                outcome="insufficient",
                raw_points=len(raw),
                valid_points=len(candles),
            )
        )
        logger.info(
            "[ChartAcq] %s %s: лише %d валідних точок (поріг > %d)",
            symbol,
            interval,
            len(candles),
            min_points,
        )

    logger.warning(
        "[ChartAcq] %s: дані недоступні на жодному інтервалі %s",
        symbol,
        list(intervals),
    )
    return NoDataAvailable(symbol=symbol, attempts=tuple(attempts))


__all__ = [
    "AcquiredSeries",
    "AcquisitionResult",
    "IntervalAttempt",
    "NoDataAvailable",
    "acquire_candles",
]
