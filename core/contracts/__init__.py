"""Контракти (schemas) між модулями проєкту.

Тут зберігаються TypedDict-описання payload між шарами (HTTP-межа → ядро
графіка → поверхня рендера), а також базовий конверт із версіонуванням схеми.

Принцип: contract-first - спочатку описуємо payload, потім імплементуємо.
"""

from __future__ import annotations

from .base import SCHEMA_VERSION, Envelope
from .chart import (  # noqa: F401
    BandPoint,
    Candle,
    LinePoint,
    Marker,
    MarkerPosition,
    MarkerShape,
    RawSignal,
    SignalSide,
    VolumePoint,
)

__all__ = [
    "Envelope",
    "SCHEMA_VERSION",
    "BandPoint",
    "Candle",
    "LinePoint",
    "Marker",
    "MarkerPosition",
    "MarkerShape",
    "RawSignal",
    "SignalSide",
    "VolumePoint",
]
