"""Viewport: початкове видиме вікно та дворівневий fullscreen.

Fullscreen:
- рівень 1 (NATIVE): нативне API платформи через поверхню;
- рівень 2 (OVERLAY): якщо нативне API недоступне - повноекранний оверлей
  з призупиненою фоновою прокруткою.
Обидва рівні сходяться в один прапорець ``is_fullscreen``; кожен перехід
планує відкладений (~120 мс) resize, щоб layout встиг устаканитись.
Серія швидких переходів дає рівно один resize.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from chart_core.surface import ChartSurface
from config.config import RESIZE_DEBOUNCE_SEC, VIEWPORT_MAX_BARS

logger = logging.getLogger("chart_core.viewport")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class ViewportMode(Enum):
    NATIVE = "native"
    OVERLAY = "overlay"


@dataclass(frozen=True, slots=True)
class ViewportState:
    """Видимий діапазон у індексах свічок (включно з обох боків)."""

    from_index: int
    to_index: int


@dataclass(frozen=True, slots=True)
class FullscreenMode:
    active: bool = False
    tier: ViewportMode | None = None


def initial_viewport(total: int, max_bars: int = VIEWPORT_MAX_BARS) -> ViewportState | None:
    """Останні ``min(max_bars, total)`` свічок, найсвіжіша - біля правого краю."""

    if total <= 0:
        return None
    return ViewportState(from_index=max(0, total - max_bars), to_index=total - 1)


class ResizeDebouncer:
    """Відкладений виклик з перезапуском таймера на кожен ``schedule``."""

    def __init__(self, delay_sec: float) -> None:
        self._delay_sec = delay_sec
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Поза event loop (синхронний хост) таймера немає - викликаємо одразу.
            callback()
            return

        def _fire() -> None:
            self._handle = None
            callback()

        self._handle = loop.call_later(self._delay_sec, _fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class ViewportController:
    """Керує видимим діапазоном і fullscreen-режимом однієї поверхні."""

    def __init__(
        self,
        surface: ChartSurface,
        *,
        max_bars: int = VIEWPORT_MAX_BARS,
        resize_debounce_sec: float = RESIZE_DEBOUNCE_SEC,
    ) -> None:
        self._surface = surface
        self._max_bars = max_bars
        self._debouncer = ResizeDebouncer(resize_debounce_sec)
        self._fullscreen = FullscreenMode()

    @property
    def fullscreen(self) -> FullscreenMode:
        return self._fullscreen

    @property
    def is_fullscreen(self) -> bool:
        return self._fullscreen.active

    @property
    def resize_pending(self) -> bool:
        return self._debouncer.pending

    def apply_initial_range(self, total: int) -> ViewportState | None:
        """Ставить стартове вікно на поверхню і повертає його."""

        state = initial_viewport(total, self._max_bars)
        if state is not None:
            self._surface.set_visible_range(state.from_index, state.to_index)
        return state

    # ── Fullscreen ────────────────────────────────────────────────────────

    def toggle_fullscreen(self) -> FullscreenMode:
        if self._fullscreen.active:
            return self.exit_fullscreen()
        return self.enter_fullscreen()

    def enter_fullscreen(self) -> FullscreenMode:
        if self._fullscreen.active:
            return self._fullscreen
        native_ok = False
        try:
            native_ok = bool(self._surface.request_native_fullscreen())
        except Exception:
            logger.debug("[ChartViewport] Нативний fullscreen впав, fallback", exc_info=True)
        if native_ok:
            self._set_fullscreen(FullscreenMode(True, ViewportMode.NATIVE))
        else:
            self._surface.set_overlay_mode(True)
            self._set_fullscreen(FullscreenMode(True, ViewportMode.OVERLAY))
        return self._fullscreen

    def exit_fullscreen(self) -> FullscreenMode:
        if not self._fullscreen.active:
            return self._fullscreen
        if self._fullscreen.tier is ViewportMode.OVERLAY:
            self._surface.set_overlay_mode(False)
        else:
            try:
                self._surface.exit_native_fullscreen()
            except Exception:
                logger.debug("[ChartViewport] Вихід з нативного fullscreen впав", exc_info=True)
        self._set_fullscreen(FullscreenMode())
        return self._fullscreen

    def on_native_fullscreen_change(self, active: bool) -> None:
        """Подія платформи (напр. Esc): синхронізуємо прапорець."""

        if active:
            if self._fullscreen.active and self._fullscreen.tier is ViewportMode.NATIVE:
                return
            if self._fullscreen.tier is ViewportMode.OVERLAY:
                self._surface.set_overlay_mode(False)
            self._set_fullscreen(FullscreenMode(True, ViewportMode.NATIVE))
            return
        if not self._fullscreen.active:
            return
        if self._fullscreen.tier is ViewportMode.OVERLAY:
            self._surface.set_overlay_mode(False)
        self._set_fullscreen(FullscreenMode())

    def _set_fullscreen(self, mode: FullscreenMode) -> None:
        self._fullscreen = mode
        logger.debug(
            "[ChartViewport] fullscreen=%s tier=%s",
            mode.active,
            mode.tier.value if mode.tier else None,
        )
        self._debouncer.schedule(self._surface.resize)

    def close(self) -> None:
        self._debouncer.cancel()


__all__ = [
    "FullscreenMode",
    "ResizeDebouncer",
    "ViewportController",
    "ViewportMode",
    "ViewportState",
    "initial_viewport",
]
