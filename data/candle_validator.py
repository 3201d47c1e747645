"""Валідатор OHLCV-точок від бекенду.

Контракт:
- точка валідна, якщо ``time/open/high/low/close`` - скінченні числа;
- ``volume`` не інвалідує точку: відсутній/NaN/від'ємний → 0.0;
- жодних винятків і побічних ефектів.

``high >= max(open, close)`` НЕ перевіряємо: дані ринкові, а графіку
достатньо скінченних чисел.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from core.contracts.chart import Candle
from core.serialization import safe_float

_PRICE_FIELDS = ("open", "high", "low", "close")


def validate_candle(raw: Any) -> Candle | None:
    """Повертає нормалізовану свічку або None для невалідної точки."""

    if not isinstance(raw, dict):
        return None

    time_v = safe_float(raw.get("time"), finite=True)
    if time_v is None:
        return None

    prices: dict[str, float] = {}
    for name in _PRICE_FIELDS:
        value = safe_float(raw.get(name), finite=True)
        if value is None:
            return None
        prices[name] = value

    volume = safe_float(raw.get("volume"), finite=True)
    if volume is None or volume < 0:
        volume = 0.0

    return {
        "time": int(time_v),
        "open": prices["open"],
        "high": prices["high"],
        "low": prices["low"],
        "close": prices["close"],
        "volume": volume,
    }


def is_valid_candle(raw: Any) -> bool:
    return validate_candle(raw) is not None


def validate_series(points: Iterable[Any]) -> list[Candle]:
    """Проганяє всі точки через валідатор і відновлює інваріант серії.

    - невалідні точки мовчки відкидаються;
    - серія сортується за ``time``;
    - дублікати ``time`` схлопуються, виграє ОСТАННЯ точка у відповіді.
    """

    by_time: dict[int, Candle] = {}
    for raw in points:
        candle = validate_candle(raw)
        if candle is None:
            continue
        by_time[candle["time"]] = candle
    return [by_time[t] for t in sorted(by_time)]


__all__ = ["validate_candle", "is_valid_candle", "validate_series"]
