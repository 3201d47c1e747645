"""Вибір профільного env-файлу для хост-раннера.

Один перемикач ``CHART_ENV_FILE`` (напр. ``.env.local`` або ``.env.prod``):
спершу з process-ENV, потім з кореневого ``.env``; інакше сам ``.env``.
Відносні шляхи резолвляться від кореня проєкту.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

ENV_SWITCH = "CHART_ENV_FILE"


@dataclass(frozen=True, slots=True)
class EnvFileSelection:
    path: Path
    source: str  # process_env | dispatcher_env | fallback
    exists: bool
    ref: str | None = None


def _dispatch_ref(project_root: Path) -> str | None:
    dispatcher = project_root / ".env"
    if not dispatcher.is_file():
        return None
    value = dotenv_values(dispatcher, encoding="utf-8").get(ENV_SWITCH)
    return value.strip() if value and value.strip() else None


def _selection(project_root: Path, ref: str, source: str) -> EnvFileSelection:
    path = Path(ref).expanduser()
    if not path.is_absolute():
        path = project_root / path
    return EnvFileSelection(path=path, source=source, exists=path.exists(), ref=ref)


def select_env_file_with_trace(project_root: Path) -> EnvFileSelection:
    """Повертає вибраний env-файл разом із джерелом рішення."""

    from_process = os.getenv(ENV_SWITCH)
    if from_process:
        return _selection(project_root, from_process, "process_env")

    from_dispatcher = _dispatch_ref(project_root)
    if from_dispatcher:
        return _selection(project_root, from_dispatcher, "dispatcher_env")

    fallback = project_root / ".env"
    return EnvFileSelection(path=fallback, source="fallback", exists=fallback.exists())


def select_env_file(project_root: Path) -> Path:
    return select_env_file_with_trace(project_root).path
