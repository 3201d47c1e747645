"""EMA для line-оверлею графіка.

Сід - сирий перший close, а НЕ SMA-розігрів: ``ema[0] == close[0]``.
Так рахував графік від початку, і відтворюваність значень важливіша за
"канонічну" формулу. Рекурсія: ``ema[i] = close[i]*k + ema[i-1]*(1-k)``,
``k = 2/(period+1)`` - це рівно ``ewm(span=period, adjust=False)``.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from core.contracts.chart import Candle, LinePoint


def ema_values(closes: pd.Series, period: int) -> pd.Series:
    """Повертає EMA-ряд тієї ж довжини, що й ``closes``."""

    if period < 1:
        raise ValueError(f"EMA period має бути >= 1, отримали {period}")
    return closes.ewm(span=period, adjust=False).mean()


def compute_ema(candles: Sequence[Candle], period: int) -> list[LinePoint]:
    """Одна EMA-точка на кожну свічку, вирівняна за ``time``."""

    if not candles:
        return []
    closes = pd.Series([c["close"] for c in candles], dtype="float64")
    values = ema_values(closes, period)
    return [
        {"time": candle["time"], "value": float(value)}
        for candle, value in zip(candles, values.to_numpy())
    ]
