"""chart_core
~~~~~~~~~~

Фасад ядра графіка: машина станів сесії, viewport/fullscreen і контракт
поверхні рендера. Зовні спостерігається лише ``ChartController``.
"""

from __future__ import annotations

from chart_core.config import CHART_CORE_CONFIG, ChartCoreConfig
from chart_core.controller import ChartController
from chart_core.session import ChartSession
from chart_core.status import ChartStatus, ChartStatusKind
from chart_core.surface import ChartSurface, InMemoryChartSurface
from chart_core.viewport import (
    FullscreenMode,
    ViewportController,
    ViewportMode,
    ViewportState,
    initial_viewport,
)

__all__ = [
    "CHART_CORE_CONFIG",
    "ChartController",
    "ChartCoreConfig",
    "ChartSession",
    "ChartStatus",
    "ChartStatusKind",
    "ChartSurface",
    "FullscreenMode",
    "InMemoryChartSurface",
    "ViewportController",
    "ViewportMode",
    "ViewportState",
    "initial_viewport",
]
