"""Спільні доменно-нейтральні утиліти: серіалізація, форматтери, контракти.

Логіка графіка живе у ``data/``, ``chart_indicators/``, ``chart_markers/`` та
``chart_core/``.
"""

from __future__ import annotations

from . import formatters as formatters
from . import serialization as serialization

__all__ = ["formatters", "serialization"]
