"""chart_markers
~~~~~~~~~~~~~

Фасад процесора маркерів: класифікація сирих сигналів бекенду і
нормалізація у форму, незалежну від рендерера.
"""

from __future__ import annotations

from chart_markers.classify import (
    classify_signal,
    format_marker_label,
    normalize_signal,
    normalize_signals,
)
from chart_markers.processor import MarkerRequest, fetch_markers, wait_for_surface

__all__ = [
    "MarkerRequest",
    "classify_signal",
    "fetch_markers",
    "format_marker_label",
    "normalize_signal",
    "normalize_signals",
    "wait_for_surface",
]
