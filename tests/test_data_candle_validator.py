"""Тести валідатора OHLCV-точок."""

from __future__ import annotations

import math

from data.candle_validator import is_valid_candle, validate_candle, validate_series


def _raw(t: int, close: float = 10.0, **overrides):  # type: ignore[no-untyped-def]
    point = {"time": t, "open": 9.5, "high": 11.0, "low": 9.0, "close": close, "volume": 100}
    point.update(overrides)
    return point


def test_validate_candle_accepts_finite_point() -> None:
    candle = validate_candle(_raw(1_700_000_000))
    assert candle == {
        "time": 1_700_000_000,
        "open": 9.5,
        "high": 11.0,
        "low": 9.0,
        "close": 10.0,
        "volume": 100.0,
    }


def test_validate_candle_rejects_missing_or_nan_price() -> None:
    assert validate_candle(_raw(1, close=math.nan)) is None
    assert validate_candle(_raw(1, high=math.inf)) is None
    raw = _raw(1)
    del raw["low"]
    assert validate_candle(raw) is None
    assert validate_candle({"open": 1, "high": 1, "low": 1, "close": 1}) is None
    assert validate_candle(_raw(1, open=None)) is None
    assert validate_candle(_raw(1, close=True)) is None


def test_validate_candle_rejects_non_dict() -> None:
    assert validate_candle(None) is None
    assert validate_candle([1, 2, 3, 4, 5]) is None
    assert not is_valid_candle("bar")


def test_volume_defaults_to_zero_instead_of_invalidating() -> None:
    raw = _raw(1)
    del raw["volume"]
    assert validate_candle(raw)["volume"] == 0.0  # type: ignore[index]
    assert validate_candle(_raw(1, volume=math.nan))["volume"] == 0.0  # type: ignore[index]
    assert validate_candle(_raw(1, volume=-5))["volume"] == 0.0  # type: ignore[index]
    assert validate_candle(_raw(1, volume="abc"))["volume"] == 0.0  # type: ignore[index]


def test_high_below_open_is_still_valid() -> None:
    # Дані ринкові: high >= max(open, close) не перевіряється.
    assert is_valid_candle(_raw(1, open=12.0, high=11.0, close=13.0))


def test_validate_series_sorts_dedups_and_drops_invalid() -> None:
    points = [
        _raw(3, close=3.0),
        _raw(1, close=1.0),
        _raw(2, close=math.nan),
        _raw(3, close=33.0),
        "garbage",
        _raw(2, close=2.0),
    ]

    series = validate_series(points)

    assert [c["time"] for c in series] == [1, 2, 3]
    # Останній дублікат виграє.
    assert series[-1]["close"] == 33.0
    times = [c["time"] for c in series]
    assert all(a < b for a, b in zip(times, times[1:]))
    for candle in series:
        for name in ("open", "high", "low", "close", "volume"):
            assert math.isfinite(candle[name])  # type: ignore[literal-required]


def test_validate_series_empty() -> None:
    assert validate_series([]) == []
