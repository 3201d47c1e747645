"""Машина станів графіка: одна сесія на (symbol, timeframe).

Оркеструє пайплайн даних, індикатори, маркери та viewport і віддає хосту
єдиний спостережуваний статус. Жоден збій не виходить за межі контролера:
усе деградує до ``NoDataAvailable``/``Error(message)`` або до нуля маркерів.

Скасування:
- ``select()`` збільшує ``generation`` і створює нову сесію;
- основний fetch попередньої сесії НЕ скасовується, а його результат
  відкидається перевіркою ``generation`` після await;
- задачі маркерів і live-оновлення попередньої сесії скасовуються одразу.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from prometheus_client import Counter

from chart_core.config import CHART_CORE_CONFIG, ChartCoreConfig
from chart_core.session import ChartSession
from chart_core.status import (
    FETCHING_DATA,
    NO_DATA_AVAILABLE,
    READY,
    RENDERING,
    ChartStatus,
    ChartStatusKind,
)
from chart_core.surface import ChartSurface
from chart_core.viewport import FullscreenMode, ViewportController
from chart_indicators import OverlayToggles, compute_overlays, compute_volume
from chart_markers.processor import MarkerRequest, fetch_markers
from config.config import (
    DEFAULT_TIMEFRAME,
    MARKER_MODES,
    VOLUME_DOWN_COLOR,
    VOLUME_UP_COLOR,
)
from core.contracts.base import SCHEMA_VERSION, Envelope
from core.serialization import to_jsonable, utc_now_ms
from data.acquisition import NoDataAvailable, acquire_candles
from data.chart_api import ChartDataSource

logger = logging.getLogger("chart_core.controller")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

CHART_STALE_RESULTS_TOTAL = Counter(
    "chart_stale_results_total",
    "Результати попередніх сесій, відкинуті через застарілий generation",
    labelnames=("stage",),
)
CHART_RENDER_FAILURES_TOTAL = Counter(
    "chart_render_failures_total",
    "Винятки під час передачі серій на поверхню рендера",
)

StatusListener = Callable[[ChartStatus], None]

# Стани, з яких live-тік може запускати повторний fetch.
_SETTLED_KINDS = frozenset(
    {
        ChartStatusKind.READY,
        ChartStatusKind.NO_DATA_AVAILABLE,
        ChartStatusKind.ERROR,
    }
)


class ChartController:
    """Керує життєвим циклом графіка на одній поверхні рендера.

    Args:
        source: джерело OHLCV та сигналів (``ChartApiClient`` або фейк)
        surface: поверхня рендера (``ChartSurface``)
        config: тюнінги сесії
        toggles: стартові перемикачі оверлеїв
        marker_mode: ``enhanced`` | ``basic``; None -> ``config.marker_mode``
        status_listener: колбек хоста на кожну зміну статусу
    """

    def __init__(
        self,
        source: ChartDataSource,
        surface: ChartSurface,
        *,
        config: ChartCoreConfig = CHART_CORE_CONFIG,
        toggles: OverlayToggles | None = None,
        marker_mode: str | None = None,
        status_listener: StatusListener | None = None,
    ) -> None:
        self._source = source
        self._surface = surface
        self._config = config
        self._toggles = toggles or OverlayToggles()
        self._marker_mode = self._check_marker_mode(marker_mode or config.marker_mode)
        self._status_listener = status_listener
        # Fullscreen належить змонтованій поверхні і переживає зміну символу.
        self._viewport = ViewportController(
            surface,
            max_bars=config.viewport_max_bars,
            resize_debounce_sec=config.resize_debounce_sec,
        )
        self._generation = 0
        self._session: ChartSession | None = None
        self._fetch_tasks: set[asyncio.Task[Any]] = set()
        self._marker_task: asyncio.Task[None] | None = None
        self._live_task: asyncio.Task[None] | None = None
        self._closed = False

    # ── Властивості для хоста ─────────────────────────────────────────────

    @property
    def session(self) -> ChartSession | None:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def status(self) -> ChartStatus | None:
        return self._session.status if self._session is not None else None

    @property
    def status_text(self) -> str:
        status = self.status
        return status.as_text() if status is not None else "Initializing"

    @property
    def active_interval(self) -> str | None:
        return self._session.active_interval if self._session is not None else None

    @property
    def toggles(self) -> OverlayToggles:
        return self._toggles

    @property
    def marker_mode(self) -> str:
        return self._marker_mode

    @property
    def fullscreen(self) -> FullscreenMode:
        return self._viewport.fullscreen

    @property
    def is_fullscreen(self) -> bool:
        return self._viewport.is_fullscreen

    # ── Життєвий цикл сесії ───────────────────────────────────────────────

    def select(self, symbol: str, timeframe: str = DEFAULT_TIMEFRAME) -> asyncio.Task[bool]:
        """Жорсткий reset і старт нової сесії; повертає задачу першого fetch.

        Має викликатися з працюючого event loop.
        """

        sym = str(symbol or "").strip().upper()
        if not sym:
            raise ValueError("symbol не може бути порожнім")
        if self._closed:
            raise RuntimeError("ChartController уже закрито")

        self._generation += 1
        self._cancel_session_tasks()
        try:
            self._surface.clear()
        except Exception:
            logger.warning("[ChartCore] Не вдалося очистити поверхню", exc_info=True)

        session = ChartSession(
            symbol=sym,
            timeframe=timeframe,
            generation=self._generation,
            intervals=self._config.intervals_for(timeframe),
        )
        self._session = session
        logger.info(
            "[ChartCore] Нова сесія %s tf=%s gen=%d інтервали=%s",
            sym,
            timeframe,
            session.generation,
            list(session.intervals),
        )
        self._notify(session.status)

        task = asyncio.create_task(self._run_session(session))
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)
        return task

    async def _run_session(self, session: ChartSession) -> bool:
        # Поверхня щойно створена: даємо їй короткий час на ініціалізацію.
        await asyncio.sleep(self._config.initial_fetch_delay_sec)
        if self._is_stale(session):
            CHART_STALE_RESULTS_TOTAL.labels(stage="start").inc()
            return False
        return await self._fetch_and_render(session)

    async def refresh(self) -> bool:
        """Повторний fetch + рендер поточної сесії (live-оновлення)."""

        session = self._session
        if session is None or session.status.kind not in _SETTLED_KINDS:
            return False
        return await self._fetch_and_render(session, refresh=True)

    async def _fetch_and_render(self, session: ChartSession, *, refresh: bool = False) -> bool:
        """Пайплайн -> рендер -> маркери; True, якщо сесія дійшла до Ready.

        На сесію в польоті не більше одного fetch: повторний виклик, поки
        попередній не завершився, одразу повертає False.
        """

        if session.acquiring:
            logger.debug("[ChartCore] %s: fetch уже триває, пропускаю", session.symbol)
            return False
        session.acquiring = True
        try:
            return await self._acquire_and_render(session, refresh=refresh)
        finally:
            session.acquiring = False

    async def _acquire_and_render(self, session: ChartSession, *, refresh: bool) -> bool:
        keep_rendered = refresh and session.status.kind is ChartStatusKind.READY
        if not keep_rendered:
            self._transition(session, FETCHING_DATA)

        try:
            result = await acquire_candles(
                self._source,
                session.symbol,
                session.intervals,
                min_points=self._config.min_valid_points,
            )
        except Exception as exc:
            # acquire_candles сам ловить збої джерела; сюди доходить лише баг.
            if self._is_stale(session):
                CHART_STALE_RESULTS_TOTAL.labels(stage="candles").inc()
                return False
            logger.warning(
                "[ChartCore] %s: пайплайн даних впав", session.symbol, exc_info=True
            )
            self._transition(session, ChartStatus.error(str(exc) or type(exc).__name__))
            return False

        if self._is_stale(session):
            CHART_STALE_RESULTS_TOTAL.labels(stage="candles").inc()
            logger.debug(
                "[ChartCore] %s: відкинуто застарілий результат (gen=%d, поточний=%d)",
                session.symbol,
                session.generation,
                self._generation,
            )
            return False

        session.attempts = result.attempts
        if isinstance(result, NoDataAvailable):
            if keep_rendered:
                logger.info(
                    "[ChartCore] %s: live-оновлення без даних, лишаю поточний рендер",
                    session.symbol,
                )
                return False
            self._transition(session, NO_DATA_AVAILABLE)
            return False

        session.active_interval = result.interval
        session.candles = result.candles

        self._transition(session, RENDERING)
        if not self._render(session):
            return False
        self._transition(session, READY)
        self._start_markers(session)
        return True

    def _render(self, session: ChartSession) -> bool:
        """Передає всі серії на поверхню; виняток -> ``Error(message)``."""

        try:
            session.volume = compute_volume(
                session.candles, up_color=VOLUME_UP_COLOR, down_color=VOLUME_DOWN_COLOR
            )
            self._surface.set_candles(session.candles)
            self._surface.set_volume(session.volume)
            self._apply_overlays(session)
            if not session.rendered_once:
                session.viewport = self._viewport.apply_initial_range(len(session.candles))
                session.rendered_once = True
        except Exception as exc:
            CHART_RENDER_FAILURES_TOTAL.inc()
            logger.warning(
                "[ChartCore] %s: помилка рендера серій", session.symbol, exc_info=True
            )
            self._transition(session, ChartStatus.error(str(exc) or type(exc).__name__))
            return False
        return True

    def _apply_overlays(self, session: ChartSession) -> None:
        session.overlays = compute_overlays(
            session.candles,
            self._toggles,
            bb_period=self._config.bb_period,
            bb_mult=self._config.bb_mult,
        )
        # Вимкнені оверлеї передаються порожніми, щоб на поверхні не лишилось точок.
        for series_id, points in session.overlays.as_series_map().items():
            self._surface.set_line(series_id, points)

    # ── Маркери ───────────────────────────────────────────────────────────

    def _start_markers(self, session: ChartSession) -> None:
        if session.active_interval is None:
            return
        if self._marker_task is not None and not self._marker_task.done():
            self._marker_task.cancel()
        self._marker_task = asyncio.create_task(self._load_markers(session))

    async def _load_markers(self, session: ChartSession) -> None:
        request = MarkerRequest(
            symbol=session.symbol,
            interval=str(session.active_interval),
            mode=self._marker_mode,
        )
        markers = await fetch_markers(
            self._source,
            request,
            session.candle_times(),
            is_surface_ready=lambda: bool(self._surface.is_ready),
            attempts=self._config.marker_retry_attempts,
            delay_sec=self._config.marker_retry_delay_sec,
        )
        if self._is_stale(session):
            CHART_STALE_RESULTS_TOTAL.labels(stage="markers").inc()
            return
        session.markers = markers
        try:
            self._surface.set_markers(markers)
        except Exception:
            logger.warning(
                "[ChartCore] %s: не вдалося передати маркери на поверхню",
                session.symbol,
                exc_info=True,
            )

    async def wait_markers(self) -> None:
        """Чекає завершення поточного завантаження маркерів (для хоста/тестів)."""

        task = self._marker_task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    def set_marker_mode(self, mode: str) -> None:
        """Перемикає endpoint сигналів; у Ready одразу перезавантажує маркери."""

        self._marker_mode = self._check_marker_mode(mode)
        session = self._session
        if session is not None and session.status.kind is ChartStatusKind.READY:
            self._start_markers(session)

    # ── Оверлеї ───────────────────────────────────────────────────────────

    def set_toggles(self, toggles: OverlayToggles) -> None:
        """Оновлює перемикачі; у Ready оверлеї перераховуються з нуля."""

        self._toggles = toggles
        session = self._session
        if session is None or session.status.kind is not ChartStatusKind.READY:
            return
        try:
            self._apply_overlays(session)
        except Exception as exc:
            CHART_RENDER_FAILURES_TOTAL.inc()
            logger.warning(
                "[ChartCore] %s: помилка оновлення оверлеїв", session.symbol, exc_info=True
            )
            self._transition(session, ChartStatus.error(str(exc) or type(exc).__name__))

    # ── Viewport ──────────────────────────────────────────────────────────

    def toggle_fullscreen(self) -> bool:
        return self._viewport.toggle_fullscreen().active

    def on_native_fullscreen_change(self, active: bool) -> None:
        self._viewport.on_native_fullscreen_change(active)

    # ── Live-оновлення ────────────────────────────────────────────────────

    def start_live_updates(self, interval_sec: float | None = None) -> asyncio.Task[None] | None:
        """Запускає періодичний refresh поточної сесії (до reset/close)."""

        session = self._session
        if session is None or self._closed:
            return None
        self.stop_live_updates()
        period = self._config.poll_interval_sec if interval_sec is None else interval_sec
        if period <= 0:
            raise ValueError("interval_sec має бути > 0")
        self._live_task = asyncio.create_task(self._live_loop(session, period))
        return self._live_task

    def stop_live_updates(self) -> None:
        if self._live_task is not None and not self._live_task.done():
            self._live_task.cancel()
        self._live_task = None

    async def _live_loop(self, session: ChartSession, period: float) -> None:
        logger.info("[ChartCore] %s: live-оновлення кожні %.2fs", session.symbol, period)
        while not self._is_stale(session):
            await asyncio.sleep(period)
            if self._is_stale(session):
                return
            if session.acquiring or session.status.kind not in _SETTLED_KINDS:
                # Попередній fetch ще триває.
                continue
            await self._fetch_and_render(session, refresh=True)

    # ── Snapshot ──────────────────────────────────────────────────────────

    def snapshot(self) -> Envelope:
        """JSON-friendly знімок стану для хоста/логів."""

        session = self._session
        fullscreen = self._viewport.fullscreen
        payload: dict[str, Any] = {
            "status": self.status_text,
            "generation": self._generation,
            "marker_mode": self._marker_mode,
            "fullscreen": {
                "active": fullscreen.active,
                "tier": fullscreen.tier.value if fullscreen.tier else None,
            },
        }
        if session is not None:
            payload.update(
                {
                    "symbol": session.symbol,
                    "timeframe": session.timeframe,
                    "active_interval": session.active_interval,
                    "candles": len(session.candles),
                    "last_candle_time": session.last_candle_time,
                    "markers": len(session.markers),
                    "overlays": {
                        sid: len(points)
                        for sid, points in session.overlays.as_series_map().items()
                    },
                    "viewport": session.viewport,
                    "attempts": [
                        {
                            "interval": a.interval,
                            "outcome": a.outcome,
                            "valid_points": a.valid_points,
                        }
                        for a in session.attempts
                    ],
                }
            )
        return {
            "schema_version": SCHEMA_VERSION,
            "payload_ts_ms": utc_now_ms(),
            "payload": to_jsonable(payload),
        }

    # ── Завершення ────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Зупиняє всі задачі; результати, що ще в дорозі, стануть застарілими."""

        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._cancel_session_tasks()
        self._viewport.close()
        pending = [t for t in self._fetch_tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ── Внутрішнє ─────────────────────────────────────────────────────────

    def _is_stale(self, session: ChartSession) -> bool:
        return session.generation != self._generation

    def _cancel_session_tasks(self) -> None:
        self.stop_live_updates()
        if self._marker_task is not None and not self._marker_task.done():
            self._marker_task.cancel()
        self._marker_task = None

    def _transition(self, session: ChartSession, new: ChartStatus) -> None:
        if session.set_status(new):
            self._notify(new)

    def _notify(self, status: ChartStatus) -> None:
        if self._status_listener is None:
            return
        try:
            self._status_listener(status)
        except Exception:
            logger.warning("[ChartCore] status_listener впав", exc_info=True)

    @staticmethod
    def _check_marker_mode(mode: str) -> str:
        value = str(mode).strip().lower()
        if value not in MARKER_MODES:
            raise ValueError(f"Невідомий marker_mode: {mode!r}")
        return value


__all__ = [
    "CHART_RENDER_FAILURES_TOTAL",
    "CHART_STALE_RESULTS_TOTAL",
    "ChartController",
    "StatusListener",
]
