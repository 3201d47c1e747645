"""Канонічні контракти даних графіка "по дроту".

Призначення:
- SSOT для TypedDict, які ходять між HTTP-межею, ядром і поверхнею рендера;
- форма полів відповідає lightweight-charts (``time`` у unix-секундах).

Важливо:
- ``Candle`` - вже провалідована точка (усі ціни скінченні, volume ≥ 0);
- ``RawSignal`` навмисно ``total=False``: upstream віддає різну форму.
"""

from __future__ import annotations

from typing import Any, Literal, TypedDict

SignalSide = Literal["BUY", "SELL"]
MarkerPosition = Literal["belowBar", "aboveBar"]
MarkerShape = Literal["arrowUp", "arrowDown"]


class Candle(TypedDict):
    """Одна OHLCV-свічка після валідації."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


class LinePoint(TypedDict):
    """Точка line-серії (EMA, смуги Боллінджера по окремості)."""

    time: int
    value: float


class BandPoint(TypedDict):
    """Точка Боллінджера: upper ≥ middle ≥ lower."""

    time: int
    upper: float
    middle: float
    lower: float


class VolumePoint(TypedDict):
    """Стовпчик гістограми обсягу з кольором за напрямком свічки."""

    time: int
    value: float
    color: str


class RawSignal(TypedDict, total=False):
    """Сирий сигнал від бекенду (форма залежить від endpoint-а)."""

    time: Any
    type: str
    shape: str
    text: str
    position: str
    color: str
    price: Any
    confidence: Any
    confluenceScore: Any


class Marker(TypedDict):
    """Нормалізований маркер, незалежний від рендерера."""

    time: int
    position: MarkerPosition
    color: str
    shape: MarkerShape
    text: str
