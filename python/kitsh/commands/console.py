"""Interactive console command."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .base import Command
from ..context import ShellContext, in_console
from ..errors import RecursiveConsole
from ..history import HistoryStore

if TYPE_CHECKING:  # pragma: no cover
    from . import CommandRegistry


class ConsoleCommand(Command):
    def __init__(self) -> None:
        super().__init__(
            "console",
            "Launch an interactive console for issuing commands",
            aliases=("c", "interactive", "shell"),
        )
        self._registry: Optional["CommandRegistry"] = None

    def bind(self, registry: "CommandRegistry") -> None:
        self._registry = registry

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        if in_console():
            raise RecursiveConsole()
        registry = self._registry
        if registry is None:
            return 1
        from ..repl import ConsoleSession

        history = HistoryStore(ctx.history_path if ctx.history_enabled else None)
        return ConsoleSession(ctx, registry, history_store=history).run()
