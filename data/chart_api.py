"""HTTP-межа графіка: асинхронний клієнт бекенду поверх aiohttp.

Контракт:
- ``fetch_candles`` → сирий список OHLCV-точок (валідацію робить пайплайн);
- ``fetch_signals`` → ``list[RawSignal]`` після явного tagged-декодування;
- будь-який не-2xx статус, мережева помилка, таймаут чи битий JSON
  піднімаються як ``ChartApiError``. Далі межі модуля цей виняток не йде:
  його ловлять пайплайн і процесор маркерів.

Форми відповіді сигналів:
- enhanced: ``{"signals": [...]}``
- basic (historical): ``[...]`` або ``{"value": [...]}``
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from config.config import (
    ENHANCED_SIGNALS_PATH,
    HISTORICAL_SIGNALS_PATH,
    HTTP_TIMEOUT_SEC,
    MIN_CONFLUENCE,
    SIGNAL_LONG_PERIOD,
    SIGNAL_SHORT_PERIOD,
    STOCKS_PATH,
)
from core.contracts.chart import RawSignal

logger = logging.getLogger("data.chart_api")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class ChartApiError(Exception):
    """Не-успішна відповідь або транспортна помилка бекенду графіка."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SignalPayloadShape(Enum):
    """Тег форми payload сигналів, визначений на HTTP-межі."""

    ARRAY = "array"
    VALUE_ENVELOPE = "value"
    SIGNALS_ENVELOPE = "signals"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class DecodedSignals:
    """Результат tagged-декодування: форма + уніфікований список."""

    shape: SignalPayloadShape
    signals: list[RawSignal] = field(default_factory=list)


def _only_dicts(items: list[Any]) -> list[RawSignal]:
    return [item for item in items if isinstance(item, dict)]  # type: ignore[misc]


def decode_signal_payload(payload: Any) -> DecodedSignals:
    """Зводить будь-яку відому форму відповіді до ``list[RawSignal]``.

    Невідома форма → ``UNKNOWN`` з порожнім списком (не помилка).
    Не-dict елементи всередині списку відкидаються.
    """

    if isinstance(payload, list):
        return DecodedSignals(SignalPayloadShape.ARRAY, _only_dicts(payload))
    if isinstance(payload, Mapping):
        signals = payload.get("signals")
        if isinstance(signals, list):
            return DecodedSignals(
                SignalPayloadShape.SIGNALS_ENVELOPE, _only_dicts(signals)
            )
        value = payload.get("value")
        if isinstance(value, list):
            return DecodedSignals(
                SignalPayloadShape.VALUE_ENVELOPE, _only_dicts(value)
            )
    return DecodedSignals(SignalPayloadShape.UNKNOWN, [])


class ChartDataSource(Protocol):
    """Мінімальний контракт джерела даних для пайплайна та маркерів."""

    async def fetch_candles(self, symbol: str, interval: str) -> list[Any]:
        """Повертає сирі OHLCV-точки або кидає ``ChartApiError``."""
        raise NotImplementedError

    async def fetch_signals(
        self, symbol: str, interval: str, mode: str
    ) -> list[RawSignal]:
        """Повертає сирі сигнали або кидає ``ChartApiError``."""
        raise NotImplementedError


@dataclass
class ChartApiClient:
    """Клієнт REST-бекенду графіка.

    Args:
        session: відкритий aiohttp.ClientSession (життєвим циклом керує хост)
        base_url: корінь бекенду, напр. ``http://localhost:3001``
        token: опційний bearer-токен користувача
        timeout_sec: загальний таймаут одного запиту
    """

    session: aiohttp.ClientSession
    base_url: str
    token: str | None = None
    timeout_sec: float = HTTP_TIMEOUT_SEC

    def _url(self, template: str, symbol: str) -> str:
        path = template.format(symbol=quote(str(symbol), safe=""))
        return f"{self.base_url.rstrip('/')}{path}"

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _get_json(self, url: str, params: dict[str, str | int]) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)
        try:
            async with self.session.get(
                url, params=params, headers=self._headers(), timeout=timeout
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise ChartApiError(
                        f"HTTP {resp.status} для {url}", status=resp.status
                    )
                return await resp.json(content_type=None)
        except ChartApiError:
            raise
        except asyncio.TimeoutError as exc:
            raise ChartApiError(f"Таймаут запиту {url}") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            raise ChartApiError(f"Помилка запиту {url}: {exc}") from exc

    async def fetch_candles(self, symbol: str, interval: str) -> list[Any]:
        url = self._url(STOCKS_PATH, symbol)
        payload = await self._get_json(
            url, {"interval": interval, "includePrePost": "true"}
        )
        if not isinstance(payload, list):
            raise ChartApiError(
                f"Очікували масив свічок, отримали {type(payload).__name__}"
            )
        return payload

    async def fetch_signals(
        self, symbol: str, interval: str, mode: str
    ) -> list[RawSignal]:
        if mode == "enhanced":
            url = self._url(ENHANCED_SIGNALS_PATH, symbol)
            params: dict[str, str | int] = {
                "interval": interval,
                "minConfluence": MIN_CONFLUENCE,
            }
        else:
            url = self._url(HISTORICAL_SIGNALS_PATH, symbol)
            params = {
                "shortPeriod": SIGNAL_SHORT_PERIOD,
                "longPeriod": SIGNAL_LONG_PERIOD,
                "interval": interval,
            }
        payload = await self._get_json(url, params)
        decoded = decode_signal_payload(payload)
        if decoded.shape is SignalPayloadShape.UNKNOWN:
            logger.debug(
                "[ChartApi] Невідома форма payload сигналів (%s %s)", symbol, mode
            )
        return decoded.signals


__all__ = [
    "ChartApiClient",
    "ChartApiError",
    "ChartDataSource",
    "DecodedSignals",
    "SignalPayloadShape",
    "decode_signal_payload",
]
