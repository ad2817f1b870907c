"""Error taxonomy for kitsh.

Every error carries the exit code the command pipeline reports for it.
Transport failures come from :mod:`kitsune_client.transport` and are
re-exported here so callers can catch the whole taxonomy from one place.
"""

from __future__ import annotations

from kitsune_client.transport import TransportError

TRANSPORT_EXIT_CODE = 2


class KitshError(Exception):
    """Base class for failures reported to the operator."""

    exit_code = 1


class CommandSyntaxError(KitshError):
    """Malformed command line (e.g. missing ``<registry>.<method>`` part)."""


class CommandError(KitshError):
    """A static command rejected its arguments."""


class UnknownRegistry(KitshError):
    def __init__(self, alias: str, known: tuple[str, ...] = ()) -> None:
        self.alias = alias
        choices = f", must be one of {', '.join(known)}" if known else ""
        super().__init__(f"invalid registry {alias!r}{choices}")


class UnknownMethod(KitshError):
    def __init__(self, alias: str, method: str) -> None:
        self.alias = alias
        self.method = method
        super().__init__(f"invalid method {method!r} for {alias} registry")


class MalformedPayload(KitshError):
    """The JSON payload could not be decoded into the request shape."""

    def __init__(self, method: str, cause: Exception) -> None:
        self.method = method
        self.cause = cause
        super().__init__(f"invalid data for {method}, JSON deserialization error: {cause}")


class RemoteError(KitshError):
    """Application-level error returned inside a successful round trip."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind}: {message}")


class RecursiveConsole(KitshError):
    def __init__(self) -> None:
        super().__init__("the console cannot be started from within a console session")


class HistoryIOError(KitshError):
    def __init__(self, path: object, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"history file {path}: {cause}")


__all__ = [
    "KitshError",
    "CommandSyntaxError",
    "CommandError",
    "UnknownRegistry",
    "UnknownMethod",
    "MalformedPayload",
    "RemoteError",
    "RecursiveConsole",
    "HistoryIOError",
    "TransportError",
    "TRANSPORT_EXIT_CODE",
]
