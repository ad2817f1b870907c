"""Help command."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from .base import Command
from ..context import ShellContext
from ..errors import CommandError

if TYPE_CHECKING:  # pragma: no cover
    from . import CommandRegistry


class HelpCommand(Command):
    def __init__(self) -> None:
        super().__init__("help", "Show available commands", aliases=("?",))
        self._registry: CommandRegistry | None = None

    def bind(self, registry: "CommandRegistry") -> None:
        self._registry = registry

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        registry = self._registry
        if not registry:
            return 1
        if argv:
            command = registry.get(argv[0])
            if command is None:
                raise CommandError(f"unknown command: {argv[0]}")
            ctx.out.write(command.format_usage())
            return 0
        for command in registry.list_commands():
            ctx.out.write(command.format_help())
        ctx.out.write(f"{'<reg>.<Method>':<12} Invoke any remote method with an optional JSON payload")
        return 0
