"""Exit command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ShellContext


class ExitCommand(Command):
    def __init__(self) -> None:
        super().__init__("exit", "Leave the console", aliases=("quit", "q"))

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        raise SystemExit(0)
