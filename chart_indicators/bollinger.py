"""Смуги Боллінджера.

Інваріанти:
- вікно хвостове ``[max(0, i-period+1) .. i]``; на старті воно коротше, тому
  перші ``period-1`` точок рахуються по неповному вікну (без NaN);
- std - ПОПУЛЯЦІЙНА (ділимо на довжину вікна, ``ddof=0``);
- ``upper >= middle >= lower`` для кожної точки.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from config.config import BOLLINGER_MULT, BOLLINGER_PERIOD
from core.contracts.chart import BandPoint, Candle


def compute_bollinger(
    candles: Sequence[Candle],
    period: int = BOLLINGER_PERIOD,
    mult: float = BOLLINGER_MULT,
) -> list[BandPoint]:
    """Рахує upper/middle/lower для кожної свічки."""

    if period < 1:
        raise ValueError(f"Bollinger period має бути >= 1, отримали {period}")
    if mult < 0:
        raise ValueError(f"Bollinger mult має бути >= 0, отримали {mult}")
    if not candles:
        return []

    closes = pd.Series([c["close"] for c in candles], dtype="float64")
    window = closes.rolling(window=period, min_periods=1)
    mean = window.mean()
    # Онлайн-дисперсія може дати -0.0/шум біля нуля на плоскому ряді.
    std = window.std(ddof=0).fillna(0.0).clip(lower=0.0)
    upper = mean + mult * std
    lower = mean - mult * std

    return [
        {
            "time": candle["time"],
            "upper": float(u),
            "middle": float(m),
            "lower": float(lo),
        }
        for candle, u, m, lo in zip(
            candles, upper.to_numpy(), mean.to_numpy(), lower.to_numpy()
        )
    ]
