"""Persistent console history."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import HistoryIOError

LOGGER = logging.getLogger("kitsh.history")

HISTORY_FILENAME = ".kitsh_history"


def default_history_path() -> Path:
    """History file under the home directory, else beside the executable."""
    try:
        return Path.home() / HISTORY_FILENAME
    except RuntimeError:
        LOGGER.debug("home directory unavailable, using executable directory")
        return Path(sys.argv[0] or sys.executable).resolve().parent / HISTORY_FILENAME


class HistoryStore:
    """File-backed history list.

    The file is read once by :meth:`load` and rewritten once by :meth:`save`;
    lines entered in between only live in memory.
    """

    def __init__(self, path: Optional[Path]) -> None:
        self.path = Path(path).expanduser() if path else None
        self.entries: List[str] = []
        self._dirty = False

    def load(self) -> None:
        if not self.path:
            return
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = handle.read()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise HistoryIOError(self.path, exc) from exc
        self.entries = [line for line in data.splitlines() if line]

    def append(self, line: str) -> None:
        if not line:
            return
        self.entries.append(line)
        self._dirty = True

    def save(self) -> None:
        if not self._dirty or not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                handle.write("".join(f"{entry}\n" for entry in self.entries))
        except OSError as exc:
            raise HistoryIOError(self.path, exc) from exc
        self._dirty = False

    def snapshot(self) -> List[str]:
        return list(self.entries)
