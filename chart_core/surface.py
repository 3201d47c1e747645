"""Контракт поверхні рендера та її in-process реалізація.

Ядро не знає про браузер/DOM: конкретні виклики платформи (нативний
fullscreen, CSS-оверлей, блокування прокрутки, resize) належать поверхні.
Ядру достатньо знати, який рівень fullscreen активний і коли просити resize.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from core.contracts.chart import Candle, LinePoint, Marker, VolumePoint


class ChartSurface(Protocol):
    """Колаборатор-рендерер (lightweight-charts або інший)."""

    @property
    def is_ready(self) -> bool:
        """True, коли поверхня ініціалізована і приймає серії."""
        raise NotImplementedError

    def set_candles(self, candles: Sequence[Candle]) -> None: ...

    def set_volume(self, points: Sequence[VolumePoint]) -> None: ...

    def set_line(self, series_id: str, points: Sequence[LinePoint]) -> None: ...

    def set_markers(self, markers: Sequence[Marker]) -> None: ...

    def set_visible_range(self, from_index: int, to_index: int) -> None: ...

    def clear(self) -> None:
        """Прибирає всі серії (свічки, обсяг, лінії, маркери)."""
        ...

    def resize(self) -> None: ...

    def request_native_fullscreen(self) -> bool:
        """Вмикає нативний fullscreen; False, якщо API платформи недоступне."""
        raise NotImplementedError

    def exit_native_fullscreen(self) -> bool: ...

    def set_overlay_mode(self, active: bool) -> None:
        """Повноекранний оверлей + призупинення фонової прокрутки."""
        ...


@dataclass
class InMemoryChartSurface:
    """Поверхня, що просто зберігає останній стан серій у пам'яті.

    Використовується хост-раннером і тестами як еталон контракту.
    """

    ready: bool = True
    native_fullscreen_supported: bool = True
    candles: list[Candle] = field(default_factory=list)
    volume: list[VolumePoint] = field(default_factory=list)
    lines: dict[str, list[LinePoint]] = field(default_factory=dict)
    markers: list[Marker] = field(default_factory=list)
    visible_range: tuple[int, int] | None = None
    native_fullscreen: bool = False
    overlay_mode: bool = False
    resize_count: int = 0
    clear_count: int = 0

    @property
    def is_ready(self) -> bool:
        return self.ready

    def set_candles(self, candles: Sequence[Candle]) -> None:
        self.candles = list(candles)

    def set_volume(self, points: Sequence[VolumePoint]) -> None:
        self.volume = list(points)

    def set_line(self, series_id: str, points: Sequence[LinePoint]) -> None:
        self.lines[series_id] = list(points)

    def set_markers(self, markers: Sequence[Marker]) -> None:
        self.markers = list(markers)

    def set_visible_range(self, from_index: int, to_index: int) -> None:
        self.visible_range = (from_index, to_index)

    def clear(self) -> None:
        self.candles = []
        self.volume = []
        self.lines = {}
        self.markers = []
        self.visible_range = None
        self.clear_count += 1

    def resize(self) -> None:
        self.resize_count += 1

    def request_native_fullscreen(self) -> bool:
        if not self.native_fullscreen_supported:
            return False
        self.native_fullscreen = True
        return True

    def exit_native_fullscreen(self) -> bool:
        if not self.native_fullscreen_supported:
            return False
        self.native_fullscreen = False
        return True

    def set_overlay_mode(self, active: bool) -> None:
        self.overlay_mode = active


__all__ = ["ChartSurface", "InMemoryChartSurface"]
