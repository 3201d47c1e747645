"""Процесор маркерів: fetch сигналів для активного інтервалу + нормалізація.

Маркери - це надбудова, а не блокуюча залежність графіка:
- поверхня ще не готова → до ``MARKER_RETRY_ATTEMPTS`` повторів кожні
  ``MARKER_RETRY_DELAY_SEC``; далі тихо здаємось (лише лог);
- не-успішна відповідь, таймаут чи порожній список → нуль маркерів.

Інтервал запиту - СТРОГО той, що обрав пайплайн (``active_interval``).
Маркери з іншого інтервалу не збігаються з часом свічок і зникають.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass

from prometheus_client import Counter

from chart_markers.classify import normalize_signals
from config.config import MARKER_RETRY_ATTEMPTS, MARKER_RETRY_DELAY_SEC
from core.contracts.chart import Marker
from data.chart_api import ChartApiError, ChartDataSource

logger = logging.getLogger("chart_markers.processor")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

CHART_MARKER_FETCH_TOTAL = Counter(
    "chart_marker_fetch_total",
    "Кількість запитів маркерів за режимом і результатом",
    labelnames=("mode", "outcome"),
)


@dataclass(frozen=True, slots=True)
class MarkerRequest:
    """Параметри одного запиту маркерів."""

    symbol: str
    interval: str
    mode: str = "enhanced"


def _check_ready(is_ready: Callable[[], bool]) -> bool:
    try:
        return bool(is_ready())
    except Exception:
        # Збій перевірки рахуємо як "ще не готова".
        logger.debug("[ChartMarkers] Перевірка готовності поверхні впала", exc_info=True)
        return False


async def wait_for_surface(
    is_ready: Callable[[], bool],
    *,
    attempts: int = MARKER_RETRY_ATTEMPTS,
    delay_sec: float = MARKER_RETRY_DELAY_SEC,
) -> bool:
    """Чекає готовності поверхні: ≤ ``attempts`` повторів з фіксованою паузою."""

    if _check_ready(is_ready):
        return True
    for attempt in range(1, attempts + 1):
        await asyncio.sleep(delay_sec)
        if _check_ready(is_ready):
            return True
        logger.debug("[ChartMarkers] Поверхня не готова (спроба %d/%d)", attempt, attempts)
    return False


async def fetch_markers(
    source: ChartDataSource,
    request: MarkerRequest,
    candle_times: Collection[int],
    *,
    is_surface_ready: Callable[[], bool] = lambda: True,
    attempts: int = MARKER_RETRY_ATTEMPTS,
    delay_sec: float = MARKER_RETRY_DELAY_SEC,
) -> list[Marker]:
    """Повертає нормалізовані маркери; будь-який збій -> порожній список."""

    ready = await wait_for_surface(
        is_surface_ready, attempts=attempts, delay_sec=delay_sec
    )
    if not ready:
        CHART_MARKER_FETCH_TOTAL.labels(mode=request.mode, outcome="surface_not_ready").inc()
        logger.info(
            "[ChartMarkers] %s: поверхня не ініціалізувалась за %d спроб, маркери пропущено",
            request.symbol,
            attempts,
        )
        return []

    try:
        raws = await source.fetch_signals(request.symbol, request.interval, request.mode)
    except ChartApiError as exc:
        CHART_MARKER_FETCH_TOTAL.labels(mode=request.mode, outcome="http_error").inc()
        logger.info(
            "[ChartMarkers] %s %s: сигнали недоступні (%s)",
            request.symbol,
            request.interval,
            exc,
        )
        return []
    except Exception:
        CHART_MARKER_FETCH_TOTAL.labels(mode=request.mode, outcome="error").inc()
        logger.warning(
            "[ChartMarkers] %s: неочікувана помилка запиту сигналів",
            request.symbol,
            exc_info=True,
        )
        return []

    if not raws:
        CHART_MARKER_FETCH_TOTAL.labels(mode=request.mode, outcome="empty").inc()
        return []

    markers = normalize_signals(raws, candle_times)
    CHART_MARKER_FETCH_TOTAL.labels(mode=request.mode, outcome="ok").inc()
    logger.debug(
        "[ChartMarkers] %s %s: %d сигналів -> %d маркерів",
        request.symbol,
        request.interval,
        len(raws),
        len(markers),
    )
    return markers


__all__ = ["MarkerRequest", "fetch_markers", "wait_for_surface"]
