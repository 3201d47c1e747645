"""Статуси графіка, які бачить хост-UI.

``Initializing -> FetchingData -> Rendering -> Ready``; з будь-якої стадії
можна потрапити у ``NoDataAvailable`` або ``Error(message)``.
Повторні переходи (live-оновлення) дозволені лише з фінальних станів.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChartStatusKind(Enum):
    INITIALIZING = "Initializing"
    FETCHING_DATA = "FetchingData"
    RENDERING = "Rendering"
    READY = "Ready"
    NO_DATA_AVAILABLE = "NoDataAvailable"
    ERROR = "Error"


_ALLOWED_TRANSITIONS: dict[ChartStatusKind, frozenset[ChartStatusKind]] = {
    ChartStatusKind.INITIALIZING: frozenset(
        {
            ChartStatusKind.FETCHING_DATA,
            ChartStatusKind.NO_DATA_AVAILABLE,
            ChartStatusKind.ERROR,
        }
    ),
    ChartStatusKind.FETCHING_DATA: frozenset(
        {
            ChartStatusKind.RENDERING,
            ChartStatusKind.NO_DATA_AVAILABLE,
            ChartStatusKind.ERROR,
        }
    ),
    ChartStatusKind.RENDERING: frozenset(
        {
            ChartStatusKind.READY,
            ChartStatusKind.NO_DATA_AVAILABLE,
            ChartStatusKind.ERROR,
        }
    ),
    # Live-оновлення перемальовує вже готовий графік без FetchingData.
    ChartStatusKind.READY: frozenset(
        {ChartStatusKind.RENDERING, ChartStatusKind.ERROR}
    ),
    ChartStatusKind.NO_DATA_AVAILABLE: frozenset({ChartStatusKind.FETCHING_DATA}),
    ChartStatusKind.ERROR: frozenset({ChartStatusKind.FETCHING_DATA}),
}


@dataclass(frozen=True, slots=True)
class ChartStatus:
    """Статус + повідомлення (лише для ``Error``)."""

    kind: ChartStatusKind
    message: str | None = None

    @classmethod
    def error(cls, message: str) -> ChartStatus:
        return cls(ChartStatusKind.ERROR, message)

    def as_text(self) -> str:
        """Рядок для хоста: ``Ready``, ``Error(timeout)`` тощо."""

        if self.kind is ChartStatusKind.ERROR:
            return f"Error({self.message or ''})"
        return self.kind.value

    def __str__(self) -> str:
        return self.as_text()

    def can_transition_to(self, new: ChartStatus) -> bool:
        return new.kind in _ALLOWED_TRANSITIONS[self.kind]


INITIALIZING = ChartStatus(ChartStatusKind.INITIALIZING)
FETCHING_DATA = ChartStatus(ChartStatusKind.FETCHING_DATA)
RENDERING = ChartStatus(ChartStatusKind.RENDERING)
READY = ChartStatus(ChartStatusKind.READY)
NO_DATA_AVAILABLE = ChartStatus(ChartStatusKind.NO_DATA_AVAILABLE)

__all__ = [
    "ChartStatus",
    "ChartStatusKind",
    "FETCHING_DATA",
    "INITIALIZING",
    "NO_DATA_AVAILABLE",
    "READY",
    "RENDERING",
]
