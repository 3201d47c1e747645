"""Версіонований конверт для snapshot-ів, які ядро графіка віддає хосту."""

from __future__ import annotations

from typing import Any, TypedDict

# Підвищується при несумісній зміні форми payload у ``chart.py``.
SCHEMA_VERSION: str = "chart.contracts.v1"


class Envelope(TypedDict):
    schema_version: str
    payload_ts_ms: int  # UTC, мс
    payload: dict[str, Any]
