"""Гістограма обсягу з кольором за напрямком свічки."""

from __future__ import annotations

from collections.abc import Sequence

from config.config import VOLUME_DOWN_COLOR, VOLUME_UP_COLOR
from core.contracts.chart import Candle, VolumePoint


def compute_volume(
    candles: Sequence[Candle],
    *,
    up_color: str = VOLUME_UP_COLOR,
    down_color: str = VOLUME_DOWN_COLOR,
) -> list[VolumePoint]:
    # close == open вважаємо "вгору".
    return [
        {
            "time": c["time"],
            "value": c["volume"],
            "color": up_color if c["close"] >= c["open"] else down_color,
        }
        for c in candles
    ]
