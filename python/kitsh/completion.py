"""prompt_toolkit completer for the kitsh console."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from .commands import CommandRegistry
from .context import ShellContext
from .errors import KitshError
from .parser import split_command


def match_prefix(candidates: Iterable[str], prefix: str) -> List[str]:
    """Case-insensitive prefix match, sorted and de-duplicated."""
    needle = prefix.lower()
    return sorted({candidate for candidate in candidates if candidate.lower().startswith(needle)})


class ShellCompleter(Completer):
    """Completes command names, ``<registry>.<Method>`` names and subcommands."""

    def __init__(self, ctx: ShellContext, registry: CommandRegistry) -> None:
        self.ctx = ctx
        self.registry = registry

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = split_command(text)
        if not text or text[-1].isspace():
            tokens.append("")
        prefix = tokens[-1]
        if len(tokens) == 1:
            candidates = self.command_names()
        elif len(tokens) == 2:
            candidates = self._subcommands(tokens[0])
        else:
            candidates = []
        for entry in match_prefix(candidates, prefix):
            yield Completion(entry, start_position=-len(prefix))

    def command_names(self) -> List[str]:
        names = list(self.registry.names())
        names.extend(self._method_names())
        return names

    def _method_names(self) -> List[str]:
        try:
            return self.ctx.catalog().method_names()
        except KitshError:
            return []

    def _subcommands(self, name: str) -> Sequence[str]:
        command = self.registry.get(name)
        return command.subcommands if command else ()
