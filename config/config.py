"""Центральне джерело конфігурації графіка.

У модулі зібрані константи пайплайна даних, індикаторів, маркерів та
viewport-у. Рантайм-налаштування (URL бекенду, токен, режим маркерів) живуть
у ``app/settings.py``; тут лише незмінні дефолти.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "DEFAULT_INTERVALS",
    "DEFAULT_TIMEFRAME",
    "TIMEFRAME_INTERVALS",
    "MIN_VALID_POINTS",
    "INITIAL_FETCH_DELAY_SEC",
    "HTTP_TIMEOUT_SEC",
    "POLL_INTERVAL_SEC",
    "EMA_FAST_PERIODS",
    "EMA_CONSERVATIVE_PERIODS",
    "BOLLINGER_PERIOD",
    "BOLLINGER_MULT",
    "VIEWPORT_MAX_BARS",
    "RESIZE_DEBOUNCE_SEC",
    "MARKER_RETRY_ATTEMPTS",
    "MARKER_RETRY_DELAY_SEC",
    "MARKER_MODES",
    "DEFAULT_MARKER_MODE",
    "MIN_CONFLUENCE",
    "SIGNAL_SHORT_PERIOD",
    "SIGNAL_LONG_PERIOD",
    "STOCKS_PATH",
    "ENHANCED_SIGNALS_PATH",
    "HISTORICAL_SIGNALS_PATH",
    "VOLUME_UP_COLOR",
    "VOLUME_DOWN_COLOR",
    "MARKER_BUY_COLOR",
    "MARKER_SELL_COLOR",
    "SERIES_IDS",
]

# ── Data acquisition ──────────────────────────────────────────────────────

# Пріоритет інтервалів: від найдрібнішого до денного.
DEFAULT_INTERVALS: Final[tuple[str, ...]] = ("1m", "5m", "1d")
DEFAULT_TIMEFRAME: Final[str] = "1d"

# Таймфрейм (перемикач у UI) -> кандидати інтервалів для пайплайна.
TIMEFRAME_INTERVALS: Final[dict[str, tuple[str, ...]]] = {
    "1d": DEFAULT_INTERVALS,
    "1wk": ("5m", "1d"),
    "1mo": ("1d",),
    "all": ("1d",),
}

# Інтервал приймається, лише якщо валідних точок СТРОГО більше за поріг.
MIN_VALID_POINTS: Final[int] = 10

INITIAL_FETCH_DELAY_SEC: Final[float] = 0.05
HTTP_TIMEOUT_SEC: Final[float] = 10.0
POLL_INTERVAL_SEC: Final[float] = 2.0

# ── Indicators ────────────────────────────────────────────────────────────

EMA_FAST_PERIODS: Final[tuple[int, int]] = (5, 15)
EMA_CONSERVATIVE_PERIODS: Final[tuple[int, int]] = (9, 20)
BOLLINGER_PERIOD: Final[int] = 20
BOLLINGER_MULT: Final[float] = 2.0

# ── Viewport ──────────────────────────────────────────────────────────────

VIEWPORT_MAX_BARS: Final[int] = 100
RESIZE_DEBOUNCE_SEC: Final[float] = 0.12

# ── Markers ───────────────────────────────────────────────────────────────

MARKER_RETRY_ATTEMPTS: Final[int] = 5
MARKER_RETRY_DELAY_SEC: Final[float] = 0.5
MARKER_MODES: Final[frozenset[str]] = frozenset({"enhanced", "basic"})
DEFAULT_MARKER_MODE: Final[str] = "enhanced"
MIN_CONFLUENCE: Final[int] = 3
SIGNAL_SHORT_PERIOD: Final[int] = 5
SIGNAL_LONG_PERIOD: Final[int] = 15

# ── HTTP endpoints (відносно base_url) ────────────────────────────────────

STOCKS_PATH: Final[str] = "/api/stocks/{symbol}"
ENHANCED_SIGNALS_PATH: Final[str] = "/api/enhanced-signals/{symbol}"
HISTORICAL_SIGNALS_PATH: Final[str] = "/api/signals/historical/{symbol}"

# ── Colors ────────────────────────────────────────────────────────────────

VOLUME_UP_COLOR: Final[str] = "#26a69a"
VOLUME_DOWN_COLOR: Final[str] = "#ef5350"
MARKER_BUY_COLOR: Final[str] = "#00c805"
MARKER_SELL_COLOR: Final[str] = "#ff5000"

# Ідентифікатори line-серій на поверхні рендера.
SERIES_IDS: Final[tuple[str, ...]] = (
    "ema_short",
    "ema_long",
    "bb_upper",
    "bb_middle",
    "bb_lower",
)
