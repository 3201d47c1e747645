"""Тести машини станів графіка (ChartController).

Покриваємо:
- повний шлях статусів Initializing -> FetchingData -> Rendering -> Ready;
- NoDataAvailable без винятків;
- стартовий viewport і його збереження на live-оновленні;
- вимкнення оверлею очищає серії на поверхні;
- маркери запитуються з active_interval;
- застарілий результат попередньої сесії (AAPL -> MSFT) відкидається;
- виняток поверхні -> Error(message).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
from prometheus_client import REGISTRY

from chart_core import ChartController, ChartCoreConfig, InMemoryChartSurface, ViewportMode
from chart_core.status import ChartStatus, ChartStatusKind
from chart_indicators import OverlayToggles
from data.chart_api import ChartApiError

_FAST = ChartCoreConfig(
    initial_fetch_delay_sec=0.0,
    marker_retry_delay_sec=0.0,
    resize_debounce_sec=0.0,
)


def _points(n: int, *, base: float = 100.0, start: int = 1_700_000_000) -> list[dict[str, Any]]:
    return [
        {
            "time": start + i * 300,
            "open": base + i,
            "high": base + i + 1,
            "low": base + i - 1,
            "close": base + i + 0.5,
            "volume": 10 + i,
        }
        for i in range(n)
    ]


class _FakeSource:
    """Фейк бекенду: свічки за (symbol, interval), сигнали, опційні "ворота"."""

    def __init__(self) -> None:
        self.candles: dict[tuple[str, str], Any] = {}
        self.signals: list[dict[str, Any]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.started: dict[str, asyncio.Event] = {}
        self.candle_calls: list[tuple[str, str]] = []
        self.signal_calls: list[tuple[str, str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_signals: Callable[[], None] | None = None

    async def fetch_candles(self, symbol: str, interval: str) -> list[Any]:
        self.candle_calls.append((symbol, interval))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if symbol in self.started:
                self.started[symbol].set()
            if symbol in self.gates:
                await self.gates[symbol].wait()
        finally:
            self.in_flight -= 1
        result = self.candles.get((symbol, interval))
        if result is None:
            raise ChartApiError("HTTP 404", status=404)
        return result

    async def fetch_signals(self, symbol: str, interval: str, mode: str) -> list[Any]:
        self.signal_calls.append((symbol, interval, mode))
        if self.on_signals is not None:
            hook, self.on_signals = self.on_signals, None
            hook()
        return list(self.signals)


class _ExplodingSurface(InMemoryChartSurface):
    def set_candles(self, candles):  # type: ignore[no-untyped-def]
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_status_flow_to_ready_and_initial_viewport() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(250)
    surface = InMemoryChartSurface()
    seen: list[str] = []
    controller = ChartController(
        source, surface, config=_FAST, status_listener=lambda s: seen.append(s.as_text())
    )

    ok = await controller.select("aapl", "1d")

    assert ok is True
    assert seen == ["Initializing", "FetchingData", "Rendering", "Ready"]
    assert controller.status_text == "Ready"
    assert controller.active_interval == "1m"
    assert len(surface.candles) == 250
    assert len(surface.volume) == 250
    assert surface.visible_range == (150, 249)
    await controller.close()


@pytest.mark.asyncio
async def test_all_intervals_exhausted_is_no_data_without_raising() -> None:
    source = _FakeSource()
    source.candles[("ILLQ", "1m")] = _points(5)
    source.candles[("ILLQ", "5m")] = _points(10)
    source.candles[("ILLQ", "1d")] = _points(2)
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)

    ok = await controller.select("ILLQ")

    assert ok is False
    assert controller.status_text == "NoDataAvailable"
    assert surface.candles == []
    assert source.signal_calls == []
    await controller.close()


@pytest.mark.asyncio
async def test_markers_use_active_interval() -> None:
    source = _FakeSource()
    candles = _points(50)
    source.candles[("AAPL", "1m")] = _points(5)
    source.candles[("AAPL", "5m")] = candles
    source.signals = [
        {"time": candles[3]["time"], "type": "BUY", "price": 103.5, "confidence": 80},
        {"time": candles[10]["time"] * 1000, "shape": "arrowDown"},
        {"time": 1, "type": "SELL"},
    ]
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)

    await controller.select("AAPL")
    await controller.wait_markers()

    assert controller.active_interval == "5m"
    assert source.signal_calls == [("AAPL", "5m", "enhanced")]
    assert [m["time"] for m in surface.markers] == [candles[3]["time"], candles[10]["time"]]
    assert surface.markers[0]["text"] == "▲ BUY $103.50 (80%)"
    assert controller.session is not None
    assert controller.session.markers == surface.markers
    await controller.close()


@pytest.mark.asyncio
async def test_bbands_toggle_off_empties_all_three_series() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(40)
    surface = InMemoryChartSurface()
    controller = ChartController(
        source, surface, config=_FAST, toggles=OverlayToggles(show_bbands=True, show_ema=True)
    )
    await controller.select("AAPL")
    for sid in ("bb_upper", "bb_middle", "bb_lower", "ema_short", "ema_long"):
        assert len(surface.lines[sid]) == 40

    controller.set_toggles(OverlayToggles(show_ema=True))

    for sid in ("bb_upper", "bb_middle", "bb_lower"):
        assert surface.lines[sid] == []
    assert len(surface.lines["ema_short"]) == 40
    assert controller.status_text == "Ready"
    await controller.close()


@pytest.mark.asyncio
async def test_stale_response_does_not_touch_new_session() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(50, base=150.0)
    source.candles[("MSFT", "1m")] = _points(30, base=400.0)
    source.gates["AAPL"] = asyncio.Event()
    source.started["AAPL"] = asyncio.Event()
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)

    aapl_task = controller.select("AAPL")
    await source.started["AAPL"].wait()

    msft_ok = await controller.select("MSFT")
    assert msft_ok is True
    msft_candles = list(surface.candles)

    # AAPL-відповідь приходить уже після перемикання.
    source.gates["AAPL"].set()
    aapl_ok = await aapl_task

    assert aapl_ok is False
    session = controller.session
    assert session is not None
    assert session.symbol == "MSFT"
    assert controller.status_text == "Ready"
    assert len(session.candles) == 30
    assert surface.candles == msft_candles
    assert surface.candles[0]["open"] == 400.0
    assert controller.generation == 2
    await controller.close()


@pytest.mark.asyncio
async def test_symbol_change_clears_surface() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(50)
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)
    await controller.select("AAPL")

    task = controller.select("NOPE")

    assert surface.candles == []
    assert surface.lines == {}
    assert controller.status_text == "Initializing"
    assert await task is False
    assert controller.status_text == "NoDataAvailable"
    await controller.close()


@pytest.mark.asyncio
async def test_render_exception_becomes_error_status() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(50)
    controller = ChartController(source, _ExplodingSurface(), config=_FAST)

    ok = await controller.select("AAPL")

    assert ok is False
    assert controller.status == ChartStatus.error("boom")
    assert controller.status_text == "Error(boom)"
    assert source.signal_calls == []
    await controller.close()


@pytest.mark.asyncio
async def test_refresh_keeps_user_viewport_and_skips_fetching_status() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(120)
    surface = InMemoryChartSurface()
    seen: list[ChartStatusKind] = []
    controller = ChartController(
        source, surface, config=_FAST, status_listener=lambda s: seen.append(s.kind)
    )
    await controller.select("AAPL")
    surface.set_visible_range(10, 20)  # користувач прокрутив графік
    seen.clear()

    source.candles[("AAPL", "1m")] = _points(121)
    ok = await controller.refresh()

    assert ok is True
    assert seen == [ChartStatusKind.RENDERING, ChartStatusKind.READY]
    assert len(surface.candles) == 121
    assert surface.visible_range == (10, 20)
    await controller.close()


@pytest.mark.asyncio
async def test_refresh_without_data_keeps_current_render() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(60)
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)
    await controller.select("AAPL")

    source.candles.clear()
    ok = await controller.refresh()

    assert ok is False
    assert controller.status_text == "Ready"
    assert len(surface.candles) == 60
    await controller.close()


@pytest.mark.asyncio
async def test_live_updates_stop_on_symbol_change() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(60)
    controller = ChartController(source, InMemoryChartSurface(), config=_FAST)
    await controller.select("AAPL")

    live = controller.start_live_updates(60.0)
    assert live is not None
    controller.select("MSFT")

    with pytest.raises(asyncio.CancelledError):
        await live
    await controller.close()


@pytest.mark.asyncio
async def test_fullscreen_falls_back_to_overlay_and_survives_symbol_change() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(60)
    surface = InMemoryChartSurface(native_fullscreen_supported=False)
    controller = ChartController(source, surface, config=_FAST)
    await controller.select("AAPL")

    assert controller.toggle_fullscreen() is True
    assert controller.fullscreen.tier is ViewportMode.OVERLAY
    assert surface.overlay_mode

    await controller.select("MSFT")
    assert controller.is_fullscreen

    assert controller.toggle_fullscreen() is False
    assert not surface.overlay_mode
    await controller.close()


@pytest.mark.asyncio
async def test_snapshot_envelope() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(30)
    controller = ChartController(
        source, InMemoryChartSurface(), config=_FAST, toggles=OverlayToggles(show_ema=True)
    )
    await controller.select("AAPL")

    envelope = controller.snapshot()

    assert envelope["schema_version"] == "chart.contracts.v1"
    payload = envelope["payload"]
    assert payload["symbol"] == "AAPL"
    assert payload["status"] == "Ready"
    assert payload["candles"] == 30
    assert payload["overlays"]["ema_short"] == 30
    assert payload["overlays"]["bb_upper"] == 0
    assert payload["viewport"] == {"from_index": 0, "to_index": 29}
    await controller.close()


@pytest.mark.asyncio
async def test_invalid_marker_mode_rejected() -> None:
    with pytest.raises(ValueError):
        ChartController(_FakeSource(), InMemoryChartSurface(), marker_mode="fancy")


def _stale_markers_count() -> float:
    return REGISTRY.get_sample_value("chart_stale_results_total", {"stage": "markers"}) or 0.0


@pytest.mark.asyncio
async def test_second_refresh_while_first_in_flight_is_rejected() -> None:
    """Поки refresh триває, другий refresh не запускає паралельний fetch."""

    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(60)
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)
    await controller.select("AAPL")

    source.gates["AAPL"] = asyncio.Event()
    source.started["AAPL"] = asyncio.Event()
    source.candles[("AAPL", "1m")] = _points(61)
    first = asyncio.create_task(controller.refresh())
    await source.started["AAPL"].wait()
    assert controller.status_text == "Ready"

    assert await controller.refresh() is False

    source.gates["AAPL"].set()
    assert await first is True
    assert source.max_in_flight == 1
    assert len(source.candle_calls) == 2
    assert len(surface.candles) == 61
    await controller.close()


@pytest.mark.asyncio
async def test_host_refresh_during_live_tick_is_rejected() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(60)
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)
    await controller.select("AAPL")

    source.gates["AAPL"] = asyncio.Event()
    source.started["AAPL"] = asyncio.Event()
    controller.start_live_updates(0.01)
    await source.started["AAPL"].wait()

    assert await controller.refresh() is False

    source.gates["AAPL"].set()
    await asyncio.sleep(0.05)
    controller.stop_live_updates()

    assert source.max_in_flight == 1
    assert controller.status_text == "Ready"
    assert len(surface.candles) == 60
    await controller.close()


@pytest.mark.asyncio
async def test_marker_retries_abandoned_on_symbol_change() -> None:
    """Ретраї маркерів старої сесії зупиняються на reset і не запитують сигнали."""

    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(40)
    source.candles[("MSFT", "1m")] = _points(40, base=400.0, start=1_800_000_000)
    source.signals = [{"time": 1_800_000_000, "type": "SELL"}]
    surface = InMemoryChartSurface(ready=False)
    cfg = ChartCoreConfig(
        initial_fetch_delay_sec=0.0,
        marker_retry_delay_sec=0.02,
        resize_debounce_sec=0.0,
    )
    controller = ChartController(source, surface, config=cfg)

    assert await controller.select("AAPL") is True
    await asyncio.sleep(0.03)  # AAPL-маркери ще в ретраях
    assert await controller.select("MSFT") is True
    surface.ready = True
    await controller.wait_markers()
    await asyncio.sleep(0.15)

    assert source.signal_calls == [("MSFT", "1m", "enhanced")]
    assert [m["time"] for m in surface.markers] == [1_800_000_000]
    assert controller.session is not None
    assert controller.session.markers == surface.markers
    await controller.close()


@pytest.mark.asyncio
async def test_marker_response_after_reset_is_discarded() -> None:
    """Сигнали AAPL приходять уже після перемикання на MSFT -> не потрапляють на поверхню."""

    source = _FakeSource()
    aapl = _points(40)
    source.candles[("AAPL", "1m")] = aapl
    source.candles[("MSFT", "1m")] = _points(30, base=400.0, start=1_800_000_000)
    source.signals = [{"time": aapl[0]["time"], "type": "BUY"}]
    surface = InMemoryChartSurface()
    controller = ChartController(source, surface, config=_FAST)
    switched: list[asyncio.Task[bool]] = []
    source.on_signals = lambda: switched.append(controller.select("MSFT"))
    stale_before = _stale_markers_count()

    assert await controller.select("AAPL") is True
    while not switched:
        await asyncio.sleep(0)
    assert await switched[0] is True
    await controller.wait_markers()

    session = controller.session
    assert session is not None
    assert session.symbol == "MSFT"
    assert session.markers == []
    assert surface.markers == []
    assert _stale_markers_count() == stale_before + 1
    await controller.close()


@pytest.mark.asyncio
async def test_initial_fetch_waits_for_configured_delay() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(30)
    cfg = ChartCoreConfig(
        initial_fetch_delay_sec=0.05,
        marker_retry_delay_sec=0.0,
        resize_debounce_sec=0.0,
    )
    controller = ChartController(source, InMemoryChartSurface(), config=cfg)

    task = controller.select("AAPL")
    await asyncio.sleep(0.01)

    assert source.candle_calls == []
    assert controller.status_text == "Initializing"
    assert await task is True
    assert source.candle_calls == [("AAPL", "1m")]
    await controller.close()


@pytest.mark.asyncio
async def test_symbol_change_during_initial_delay_skips_old_fetch() -> None:
    source = _FakeSource()
    source.candles[("AAPL", "1m")] = _points(30)
    source.candles[("MSFT", "1m")] = _points(30, base=400.0)
    cfg = ChartCoreConfig(
        initial_fetch_delay_sec=0.02,
        marker_retry_delay_sec=0.0,
        resize_debounce_sec=0.0,
    )
    controller = ChartController(source, InMemoryChartSurface(), config=cfg)

    aapl_task = controller.select("AAPL")
    msft_task = controller.select("MSFT")

    assert await aapl_task is False
    assert await msft_task is True
    assert all(symbol == "MSFT" for symbol, _ in source.candle_calls)
    await controller.close()
