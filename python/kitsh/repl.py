"""Interactive console session for kitsh."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from .commands import CommandRegistry
from .completion import ShellCompleter
from .context import ShellContext, console_scope, in_console
from .errors import HistoryIOError, RecursiveConsole
from .history import HistoryStore
from .output import emit_error
from .parser import split_command, split_payload, strip_global_options
from .pipeline import execute

LOGGER = logging.getLogger("kitsh.repl")

PROMPT = "kitsh> "

LineReader = Callable[[], str]


class ConsoleSession:
    """Read-eval-print loop re-entering the command pipeline per line.

    Without an explicit ``read_line`` a prompt_toolkit session is used when
    stdin is a terminal and the context's plain line reader otherwise.
    """

    def __init__(
        self,
        ctx: ShellContext,
        registry: CommandRegistry,
        *,
        history_store: Optional[HistoryStore] = None,
        read_line: Optional[LineReader] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_store = history_store or HistoryStore(None)
        self._read_line = read_line

    def run(self) -> int:
        if in_console():
            raise RecursiveConsole()
        # Bind the catalog before the first prompt so completion sees every method.
        self.ctx.catalog()
        self._load_history()
        try:
            return self._loop()
        finally:
            self._save_history()

    def _loop(self) -> int:
        reader = self._reader()
        while True:
            try:
                line = reader()
            except (EOFError, KeyboardInterrupt):
                self.ctx.out.write()
                return 0
            try:
                self.handle_line(line)
            except SystemExit as exc:
                return int(exc.code or 0)

    def handle_line(self, line: str) -> Optional[int]:
        """Tokenize and execute one line; returns None when nothing ran."""
        tokens = split_command(line)
        argv = strip_global_options(tokens)
        if not argv:
            return None
        if "." in argv[0] and self.registry.get(argv[0]) is None:
            # Remote methods take the rest of the line verbatim as their payload.
            payload = split_payload(line, len(tokens) - len(argv) + 1)
            argv = [argv[0]] if payload is None else [argv[0], payload]
        try:
            with console_scope(argv):
                return self._dispatch(argv)
        finally:
            self.history_store.append(line)

    def _dispatch(self, argv: list[str]) -> int:
        try:
            return execute(self.ctx, self.registry, argv)
        except SystemExit:
            raise
        except Exception as exc:
            LOGGER.debug("command failed", exc_info=True)
            emit_error(self.ctx, message=f"command '{argv[0]}' failed: {exc}")
            return 1

    def _reader(self) -> LineReader:
        if self._read_line is not None:
            return self._read_line
        if not sys.stdin.isatty():
            return lambda: self.ctx.read_line(PROMPT)
        history = InMemoryHistory()
        for entry in self.history_store.snapshot():
            history.append_string(entry)
        session: PromptSession[str] = PromptSession(
            PROMPT,
            history=history,
            completer=ShellCompleter(self.ctx, self.registry),
            complete_while_typing=False,
        )
        return session.prompt

    def _load_history(self) -> None:
        try:
            self.history_store.load()
        except HistoryIOError as exc:
            emit_error(self.ctx, message=str(exc))

    def _save_history(self) -> None:
        try:
            self.history_store.save()
        except HistoryIOError as exc:
            emit_error(self.ctx, message=str(exc))
