"""chart_indicators
~~~~~~~~~~~~~~~~

Фасад індикаторного рушія графіка.

Рушій перераховує ВСІ оверлеї з нуля на кожен fetch (без інкрементального
оновлення): n обмежене кількістю свічок однієї сесії, тож O(n·period)
дешевше за підтримку стану між fetch-ами.

Ключові UX-інваріанти:
- вимкнений оверлей = порожня серія (довжина 0), а не прихована;
- кожна серія вирівняна 1:1 за ``time`` зі свічками, з яких її пораховано.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from chart_indicators.bollinger import compute_bollinger
from chart_indicators.ema import compute_ema, ema_values
from chart_indicators.volume import compute_volume
from config.config import (
    BOLLINGER_MULT,
    BOLLINGER_PERIOD,
    EMA_CONSERVATIVE_PERIODS,
    EMA_FAST_PERIODS,
    SERIES_IDS,
)
from core.contracts.chart import BandPoint, Candle, LinePoint


@dataclass(frozen=True, slots=True)
class OverlayToggles:
    """Перемикачі оверлеїв, які контролює хост."""

    show_ema: bool = False
    show_bbands: bool = False
    conservative_ema: bool = False  # False -> EMA 5/15, True -> EMA 9/20

    @property
    def ema_periods(self) -> tuple[int, int]:
        return EMA_CONSERVATIVE_PERIODS if self.conservative_ema else EMA_FAST_PERIODS


@dataclass(slots=True)
class OverlaySeries:
    """Усі line-серії оверлеїв однієї сесії."""

    ema_short: list[LinePoint] = field(default_factory=list)
    ema_long: list[LinePoint] = field(default_factory=list)
    bb_upper: list[LinePoint] = field(default_factory=list)
    bb_middle: list[LinePoint] = field(default_factory=list)
    bb_lower: list[LinePoint] = field(default_factory=list)

    def as_series_map(self) -> dict[str, list[LinePoint]]:
        """series_id -> точки у порядку ``SERIES_IDS``."""

        return {sid: getattr(self, sid) for sid in SERIES_IDS}


def split_bands(
    bands: Sequence[BandPoint],
) -> tuple[list[LinePoint], list[LinePoint], list[LinePoint]]:
    """Розкладає BandPoint на три line-серії (upper, middle, lower)."""

    upper = [{"time": b["time"], "value": b["upper"]} for b in bands]
    middle = [{"time": b["time"], "value": b["middle"]} for b in bands]
    lower = [{"time": b["time"], "value": b["lower"]} for b in bands]
    return upper, middle, lower  # type: ignore[return-value]


def compute_overlays(
    candles: Sequence[Candle],
    toggles: OverlayToggles,
    *,
    bb_period: int = BOLLINGER_PERIOD,
    bb_mult: float = BOLLINGER_MULT,
) -> OverlaySeries:
    """Будує повний набір оверлеїв; вимкнені лишаються порожніми."""

    out = OverlaySeries()
    if not candles:
        return out

    if toggles.show_ema:
        short_period, long_period = toggles.ema_periods
        out.ema_short = compute_ema(candles, short_period)
        out.ema_long = compute_ema(candles, long_period)

    if toggles.show_bbands:
        bands = compute_bollinger(candles, bb_period, bb_mult)
        out.bb_upper, out.bb_middle, out.bb_lower = split_bands(bands)

    return out


__all__ = [
    "OverlaySeries",
    "OverlayToggles",
    "compute_bollinger",
    "compute_ema",
    "compute_overlays",
    "compute_volume",
    "ema_values",
    "split_bands",
]
