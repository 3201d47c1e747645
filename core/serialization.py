"""Час, безпечні числові приведення та JSON для графіка.

Хелпери використовують HTTP-межа (payload бекенду), валідатор свічок і
snapshot контролера. Жоден з них не кидає на "брудних" даних: замість
винятку повертається None.
"""

from __future__ import annotations

# ── Imports ───────────────────────────────────────────────────────────────
import json
import math
from dataclasses import fields, is_dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Бекенд іноді віддає час у мілісекундах; секунди до ~2286 року менші за це.
_MS_EPOCH_THRESHOLD = 1e12

# ── Time ──────────────────────────────────────────────────────────────────


def utc_now_ms() -> int:
    return int(datetime.now(tz=UTC).timestamp() * 1000)


def utc_seconds_to_human_utc(seconds: float) -> str:
    """Unix-секунди свічки -> ``YYYY-MM-DD HH:MM:SS`` (UTC, без ``Z``)."""

    return datetime.fromtimestamp(float(seconds), tz=UTC).strftime("%Y-%m-%d %H:%M:%S")


def epoch_to_seconds(value: Any) -> int | None:
    """Час сигналу/свічки -> цілі unix-секунди.

    Значення більше за 1e12 вважаються мілісекундами.
    """

    number = safe_float(value, finite=True)
    if number is None:
        return None
    if abs(number) > _MS_EPOCH_THRESHOLD:
        number /= 1000.0
    return int(number)


# ── Numbers ───────────────────────────────────────────────────────────────


def safe_float(value: Any, *, finite: bool = False) -> float | None:
    """``float(value)`` або None.

    ``bool`` числом не вважається: ``True`` у полі ціни означає зіпсований
    payload. З ``finite=True`` NaN/inf також дають None.
    """

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if finite and not math.isfinite(number):
        return None
    return number


# ── JSON ──────────────────────────────────────────────────────────────────


def to_jsonable(obj: Any) -> Any:
    """Рекурсивно зводить значення до типів, які приймає ``json``.

    Enum -> ім'я, dataclass (зокрема slotted) -> dict полів, tuple/set -> list,
    NaN/inf -> None. Невідоме -> ``str(obj)``.
    """

    if obj is None or isinstance(obj, (str, bool, int)):
        return obj
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, Enum):
        return obj.name
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {str(key): to_jsonable(val) for key, val in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return [to_jsonable(v) for v in sorted(obj, key=str)]
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return str(obj)


def json_dumps(obj: Any, *, pretty: bool = False) -> str:
    """Детермінований JSON (сортовані ключі, UTF-8 без екранування)."""

    return json.dumps(
        to_jsonable(obj),
        ensure_ascii=False,
        sort_keys=True,
        indent=2 if pretty else None,
        separators=None if pretty else (",", ":"),
    )
