"""Форматтери чисел і часу для підписів маркерів, таблиць і логів.

Лише представлення: жодних правил класифікації чи кольорів.
"""

from __future__ import annotations

# ── Imports ───────────────────────────────────────────────────────────────
from decimal import Decimal
from typing import Final

from core.serialization import utc_seconds_to_human_utc

_COMPACT_STEPS: Final[tuple[tuple[Decimal, str], ...]] = (
    (Decimal(1_000_000_000), "B"),
    (Decimal(1_000_000), "M"),
    (Decimal(1_000), "K"),
)

# ── Numbers ───────────────────────────────────────────────────────────────


def _decimal(value: float | Decimal) -> Decimal:
    # str() дає найкоротше точне представлення float і без scientific.
    return value if isinstance(value, Decimal) else Decimal(str(value))


def fmt_price(value: float | Decimal, *, digits: int | None = None) -> str:
    """Ціна як рядок.

    З ``digits`` - фіксована кількість знаків (``123.46``); без нього -
    компактний запис без хвостових нулів (``0.1``, ``42``).
    """

    dec = _decimal(value)
    if digits is not None:
        return f"{dec:.{digits}f}"
    return format(dec.normalize(), "f")


def fmt_qty(value: float | Decimal) -> str:
    """Обсяг у компактному вигляді: ``950``, ``12.5K``, ``3.2M``."""

    dec = _decimal(value)
    magnitude = abs(dec)
    for step, suffix in _COMPACT_STEPS:
        if magnitude >= step:
            scaled = (dec / step).quantize(Decimal("0.1"))
            return f"{format(scaled.normalize(), 'f')}{suffix}"
    return format(dec.quantize(Decimal(1)), "f")


# ── Time ──────────────────────────────────────────────────────────────────


def fmt_ms(ms: int) -> str:
    """Тривалість: ``250ms``, ``1.50s``, ``2m05s``."""

    if ms < 0:
        return "-"
    if ms < 1000:
        return f"{ms}ms"
    seconds = ms / 1000.0
    if seconds < 60.0:
        return f"{seconds:.2f}s"
    minutes, rest = divmod(int(round(seconds)), 60)
    return f"{minutes}m{rest:02d}s"


def fmt_ts_seconds(ts: int | None) -> str:
    if ts is None:
        return "-"
    return utc_seconds_to_human_utc(ts)
