"""Хост-раннер графіка: один вибір символу з опційними live-оновленнями.

Приклад::

    python -m app.main AAPL --timeframe 1d --mode enhanced --live 10

Збирає ``aiohttp.ClientSession`` -> ``ChartApiClient`` ->
``InMemoryChartSurface`` -> ``ChartController`` і друкує підсумок у rich-таблиці.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

import aiohttp
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from app.settings import Settings, settings
from chart_core import CHART_CORE_CONFIG, ChartController, InMemoryChartSurface
from chart_core.status import ChartStatus, ChartStatusKind
from chart_indicators import OverlayToggles
from config.config import DEFAULT_TIMEFRAME, MARKER_MODES, TIMEFRAME_INTERVALS
from core.formatters import fmt_ms, fmt_price, fmt_qty, fmt_ts_seconds
from core.serialization import json_dumps
from data.chart_api import ChartApiClient

logger = logging.getLogger("app.main")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


def configure_logging(level: str) -> None:
    """Навішує RichHandler (stderr) на root-логер; повторний виклик не дублює."""

    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h, RichHandler) for h in root.handlers):
        return
    root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def build_summary_table(
    controller: ChartController,
    surface: InMemoryChartSurface,
    *,
    elapsed_ms: int | None = None,
) -> Table:
    """Підсумок стану графіка для консолі."""

    envelope = controller.snapshot()
    payload: dict[str, Any] = envelope["payload"]
    table = Table(title="Chart", expand=False)
    table.add_column("Поле", justify="right", style="bold cyan")
    table.add_column("Значення", justify="left")
    table.add_row("Символ", str(payload.get("symbol", "-")))
    table.add_row("Таймфрейм", str(payload.get("timeframe", "-")))
    table.add_row("Статус", str(payload.get("status")))
    table.add_row("Інтервал", str(payload.get("active_interval") or "-"))
    table.add_row("Свічок", str(payload.get("candles", 0)))
    if surface.candles:
        last = surface.candles[-1]
        table.add_row("Остання", fmt_ts_seconds(last["time"]))
        table.add_row("Close", fmt_price(last["close"], digits=2))
        table.add_row("Volume", fmt_qty(last["volume"]))
    table.add_row("Маркерів", str(payload.get("markers", 0)))
    overlays = payload.get("overlays") or {}
    enabled = [sid for sid, count in overlays.items() if count]
    table.add_row("Оверлеї", ", ".join(enabled) or "-")
    if surface.visible_range is not None:
        table.add_row("Viewport", f"{surface.visible_range[0]}..{surface.visible_range[1]}")
    for attempt in payload.get("attempts") or []:
        table.add_row(
            f"Спроба {attempt['interval']}",
            f"{attempt['outcome']} ({attempt['valid_points']})",
        )
    if elapsed_ms is not None:
        table.add_row("Час", fmt_ms(elapsed_ms))
    table.add_row("Schema", str(envelope["schema_version"]))
    return table


async def run_chart(
    symbol: str,
    *,
    timeframe: str = DEFAULT_TIMEFRAME,
    marker_mode: str | None = None,
    live_sec: float = 0.0,
    toggles: OverlayToggles | None = None,
    cfg: Settings = settings,
    console: Console | None = None,
    as_json: bool = False,
) -> ChartStatus | None:
    """Проганяє одну сесію графіка і повертає фінальний статус."""

    core_cfg = replace(CHART_CORE_CONFIG, poll_interval_sec=cfg.chart_poll_interval_sec)
    surface = InMemoryChartSurface()
    out = console or Console()
    started = time.perf_counter()

    def _on_status(status: ChartStatus) -> None:
        logger.info("[ChartHost] %s -> %s", symbol, status)

    async with aiohttp.ClientSession() as http:
        client = ChartApiClient(
            session=http,
            base_url=cfg.chart_api_base_url,
            token=cfg.chart_api_token,
            timeout_sec=cfg.chart_http_timeout_sec,
        )
        controller = ChartController(
            client,
            surface,
            config=core_cfg,
            toggles=toggles,
            marker_mode=marker_mode or cfg.chart_marker_mode,
            status_listener=_on_status,
        )
        try:
            await controller.select(symbol, timeframe)
            await controller.wait_markers()
            if live_sec > 0:
                controller.start_live_updates()
                await asyncio.sleep(live_sec)
                controller.stop_live_updates()
                await controller.wait_markers()
            if as_json:
                out.print_json(json_dumps(controller.snapshot()))
            else:
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                out.print(build_summary_table(controller, surface, elapsed_ms=elapsed_ms))
            return controller.status
        finally:
            await controller.close()


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chart data pipeline runner")
    parser.add_argument("symbol", help="Тікер, напр. AAPL")
    parser.add_argument(
        "--timeframe",
        default=DEFAULT_TIMEFRAME,
        choices=sorted(TIMEFRAME_INTERVALS),
        help="Таймфрейм (визначає кандидати інтервалів)",
    )
    parser.add_argument(
        "--mode",
        default=None,
        choices=sorted(MARKER_MODES),
        help="Endpoint сигналів для маркерів",
    )
    parser.add_argument(
        "--live", type=float, default=0.0, help="Скільки секунд тримати live-оновлення"
    )
    parser.add_argument("--ema", action="store_true", help="Показати EMA 5/15")
    parser.add_argument(
        "--conservative", action="store_true", help="EMA 9/20 замість 5/15"
    )
    parser.add_argument("--bbands", action="store_true", help="Показати Bollinger Bands")
    parser.add_argument(
        "--json", action="store_true", help="Вивести snapshot як JSON замість таблиці"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(settings.log_level)
    toggles = OverlayToggles(
        show_ema=args.ema or args.conservative,
        show_bbands=args.bbands,
        conservative_ema=args.conservative,
    )
    try:
        status = asyncio.run(
            run_chart(
                args.symbol,
                timeframe=args.timeframe,
                marker_mode=args.mode,
                live_sec=args.live,
                toggles=toggles,
                as_json=args.json,
            )
        )
    except KeyboardInterrupt:
        logger.info("[ChartHost] Зупинка за Ctrl+C")
        return 130
    if status is None or status.kind is not ChartStatusKind.READY:
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
