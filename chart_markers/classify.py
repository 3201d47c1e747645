"""Класифікація та нормалізація сирих сигналів у маркери.

Пріоритет правил (перше, що спрацювало, виграє):
1. явне поле ``type`` (``BUY``/``SELL``, без урахування регістру);
2. підказка ``shape`` (``arrowUp`` -> BUY, ``arrowDown`` -> SELL);
3. підрядок у ``text`` (``buy``, потім ``sell``, без урахування регістру).

Сигнал, що не підпав під жодне правило, відкидається: сторону не вгадуємо.

Позиціонування фіксоване: BUY під баром стрілкою вгору, SELL над баром
стрілкою вниз, щоб протилежні маркери не перекривали тіло свічки.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Any

from config.config import MARKER_BUY_COLOR, MARKER_SELL_COLOR
from core.contracts.chart import Marker, RawSignal, SignalSide
from core.serialization import epoch_to_seconds, safe_float

_SHAPE_SIDES: dict[str, SignalSide] = {"arrowUp": "BUY", "arrowDown": "SELL"}
_ARROWS: dict[str, str] = {"BUY": "▲", "SELL": "▼"}


def classify_signal(raw: RawSignal) -> SignalSide | None:
    """Визначає сторону сигналу або None."""

    type_hint = raw.get("type")
    if isinstance(type_hint, str):
        normalized = type_hint.strip().upper()
        if normalized in ("BUY", "SELL"):
            return normalized  # type: ignore[return-value]

    shape_hint = raw.get("shape")
    if isinstance(shape_hint, str) and shape_hint in _SHAPE_SIDES:
        return _SHAPE_SIDES[shape_hint]

    text = raw.get("text")
    if isinstance(text, str):
        lowered = text.lower()
        if "buy" in lowered:
            return "BUY"
        if "sell" in lowered:
            return "SELL"
    return None


def _confidence_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    number = safe_float(value, finite=True)
    if number is not None:
        return f"{number:g}"
    text = str(value).strip()
    return text or None


def format_marker_label(side: SignalSide, price: Any = None, confidence: Any = None) -> str:
    """``"{arrow} {SIDE}{ $price}{ (confidence%)}"``.

    Ціна додається лише якщо вона числова (2 знаки), впевненість - лише
    якщо присутня.
    """

    label = f"{_ARROWS[side]} {side}"
    price_v = safe_float(price, finite=True)
    if price_v is not None:
        label += f" ${price_v:.2f}"
    conf = _confidence_text(confidence)
    if conf is not None:
        label += f" ({conf}%)"
    return label


def normalize_signal(
    raw: RawSignal,
    *,
    buy_color: str = MARKER_BUY_COLOR,
    sell_color: str = MARKER_SELL_COLOR,
) -> Marker | None:
    """Один RawSignal -> один Marker (або None, якщо сигнал відкинуто)."""

    side = classify_signal(raw)
    if side is None:
        return None
    ts = epoch_to_seconds(raw.get("time"))
    if ts is None:
        return None
    label = format_marker_label(side, raw.get("price"), raw.get("confidence"))
    if side == "BUY":
        return {
            "time": ts,
            "position": "belowBar",
            "color": buy_color,
            "shape": "arrowUp",
            "text": label,
        }
    return {
        "time": ts,
        "position": "aboveBar",
        "color": sell_color,
        "shape": "arrowDown",
        "text": label,
    }


def normalize_signals(
    raws: Iterable[RawSignal],
    candle_times: Collection[int],
) -> list[Marker]:
    """Нормалізує список і лишає лише маркери на існуючих свічках.

    Рендерер вимагає, щоб ``time`` маркера збігався з ``time`` свічки і щоб
    маркери йшли за зростанням часу.
    """

    times = candle_times if isinstance(candle_times, (set, frozenset)) else set(candle_times)
    markers: list[Marker] = []
    for raw in raws:
        marker = normalize_signal(raw)
        if marker is None or marker["time"] not in times:
            continue
        markers.append(marker)
    markers.sort(key=lambda m: m["time"])
    return markers


__all__ = [
    "classify_signal",
    "format_marker_label",
    "normalize_signal",
    "normalize_signals",
]
