# src/tsumiage/sync/change_signal.py

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class FileChangeSignal:
    """
    "Data changed" wake-up shared through a stamp file next to the store.

    notify() atomically replaces the stamp with a new token; watchers poll
    token() and re-read the whole store when it differs from the last one
    they saw. The token carries no data about what changed.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def notify(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        token = f"{time.time_ns()}-{os.getpid()}"
        tmp = self._path.with_name(f"{self._path.name}.{os.getpid()}.tmp")
        tmp.write_text(token, "utf-8")
        os.replace(tmp, self._path)
        logger.debug("Change signal raised token=%s", token)

    def token(self) -> str | None:
        try:
            raw = self._path.read_text("utf-8").strip()
        except FileNotFoundError:
            return None
        return raw or None
