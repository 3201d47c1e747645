"""Тести EMA: сід першим close і рекурсія з k = 2/(period+1)."""

from __future__ import annotations

import pytest

from chart_indicators import OverlayToggles, compute_ema, compute_overlays


def _candles(closes: list[float]) -> list[dict]:
    return [
        {"time": 1000 + i * 60, "open": c, "high": c, "low": c, "close": c, "volume": 0.0}
        for i, c in enumerate(closes)
    ]


@pytest.mark.parametrize("period", [1, 5, 9, 15, 20, 200])
def test_ema_seed_equals_first_close(period: int) -> None:
    candles = _candles([123.45, 120.0, 130.0, 125.5])
    ema = compute_ema(candles, period)  # type: ignore[arg-type]
    assert ema[0]["value"] == candles[0]["close"]


def test_ema_recurrence_matches_manual() -> None:
    closes = [10.0, 11.0, 12.0, 11.0, 13.0]
    period = 3
    k = 2 / (period + 1)
    expected = [closes[0]]
    for close in closes[1:]:
        expected.append(close * k + expected[-1] * (1 - k))

    ema = compute_ema(_candles(closes), period)  # type: ignore[arg-type]

    assert [p["value"] for p in ema] == pytest.approx(expected)


def test_ema_is_time_aligned_one_to_one() -> None:
    candles = _candles([1.0, 2.0, 3.0])
    ema = compute_ema(candles, 5)  # type: ignore[arg-type]
    assert [p["time"] for p in ema] == [c["time"] for c in candles]


def test_ema_empty_and_bad_period() -> None:
    assert compute_ema([], 5) == []
    with pytest.raises(ValueError):
        compute_ema(_candles([1.0]), 0)  # type: ignore[arg-type]


def test_overlay_presets_fast_and_conservative() -> None:
    candles = _candles([float(i) for i in range(1, 30)])

    fast = compute_overlays(candles, OverlayToggles(show_ema=True))  # type: ignore[arg-type]
    slow = compute_overlays(  # type: ignore[arg-type]
        candles, OverlayToggles(show_ema=True, conservative_ema=True)
    )

    assert fast.ema_short == compute_ema(candles, 5)  # type: ignore[arg-type]
    assert fast.ema_long == compute_ema(candles, 15)  # type: ignore[arg-type]
    assert slow.ema_short == compute_ema(candles, 9)  # type: ignore[arg-type]
    assert slow.ema_long == compute_ema(candles, 20)  # type: ignore[arg-type]
    assert fast.bb_upper == fast.bb_middle == fast.bb_lower == []
