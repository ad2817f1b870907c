"""Shell context and console recursion marker."""

from __future__ import annotations

import contextlib
import logging
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional, Sequence

from kitsune_client import KitsuneClient

from .errors import CommandError
from .output import OutputSink

if TYPE_CHECKING:  # pragma: no cover
    from .catalog import RegistryCatalog

LOGGER = logging.getLogger("kitsh.context")

ClientFactory = Callable[[str, bool], KitsuneClient]

# Set while a console session re-enters the command pipeline; holds the argv
# being executed so nested invocations can tell they run inside a console.
CONSOLE_MARKER: ContextVar[Optional[Sequence[str]]] = ContextVar("console command", default=None)


def in_console() -> bool:
    return CONSOLE_MARKER.get() is not None


@contextlib.contextmanager
def console_scope(argv: List[str]) -> Iterator[None]:
    token = CONSOLE_MARKER.set(tuple(argv))
    try:
        yield
    finally:
        CONSOLE_MARKER.reset(token)


@dataclass
class ShellContext:
    """Holds shared shell state: target, rendering options and the client."""

    target: Optional[str] = None
    ssl: bool = False
    pretty: bool = True
    out: OutputSink = field(default_factory=OutputSink)
    history_path: Optional[Path] = None
    history_enabled: bool = True
    read_line: Callable[[str], str] = input
    client_factory: ClientFactory = KitsuneClient
    _client: Optional[KitsuneClient] = field(default=None, init=False, repr=False)
    _catalog: Optional["RegistryCatalog"] = field(default=None, init=False, repr=False)

    def ensure_client(self) -> KitsuneClient:
        """Create the kitsune client for the configured target if needed."""
        if self._client is not None:
            return self._client
        if not self.target:
            raise CommandError("no target configured (use --target or KITSUNE_TARGET)")
        LOGGER.debug("connecting to %s (ssl=%s)", self.target, self.ssl)
        self._client = self.client_factory(self.target, self.ssl)
        return self._client

    def catalog(self) -> "RegistryCatalog":
        """Registry catalog bound to the live client, built once per connection."""
        if self._catalog is None:
            from .catalog import RegistryCatalog

            self._catalog = RegistryCatalog.from_client(self.ensure_client())
        return self._catalog

    def disconnect(self) -> None:
        client = self._client
        self._client = None
        self._catalog = None
        if client is None:
            return
        try:
            client.close()
        except OSError as exc:
            LOGGER.debug("client close failed: %s", exc)
