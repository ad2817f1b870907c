"""Command base classes and shared argument helpers for kitsh."""

from __future__ import annotations

import argparse
import enum
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, NoReturn, Sequence, Type, TypeVar

from ..context import ShellContext
from ..errors import CommandError, RemoteError

E = TypeVar("E", bound=enum.IntEnum)


class CommandArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as CommandError instead of exiting."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("add_help", False)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> NoReturn:
        raise CommandError(f"{self.prog}: {message}")


@dataclass
class Command:
    """Abstract command description."""

    name: str
    description: str
    aliases: Sequence[str] = field(default_factory=tuple)
    subcommands: Sequence[str] = field(default_factory=tuple)

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        raise NotImplementedError("Command must implement run()")

    def format_help(self) -> str:
        text = f"{self.name:<12} {self.description}"
        if self.aliases:
            text += f" (aliases: {', '.join(self.aliases)})"
        return text

    def format_usage(self) -> str:
        parser = getattr(self, "_parser", None)
        if isinstance(parser, argparse.ArgumentParser):
            return parser.format_help().rstrip()
        return self.format_help()


def check_response(response: Any) -> Any:
    """Raise RemoteError when a reply carries the service's error union."""
    error = getattr(response, "error", None)
    if error is not None:
        raise RemoteError(error.type, error.msg)
    return response


def parse_uuid(text: str, *, what: str = "id") -> str:
    try:
        return str(uuid.UUID(text))
    except (TypeError, ValueError) as exc:
        raise CommandError(f"invalid {what} {text!r}: {exc}") from exc


def parse_metadata(text: str) -> Dict[str, str]:
    """Decode a JSON object of string values."""
    try:
        data = json.loads(text or "{}")
    except json.JSONDecodeError as exc:
        raise CommandError(f"invalid metadata: {exc}") from exc
    if not isinstance(data, dict) or not all(isinstance(value, str) for value in data.values()):
        raise CommandError("invalid metadata: expected a JSON object of string values")
    return data


def parse_enum(enum_cls: Type[E], text: str, message: str) -> E:
    try:
        return enum_cls[text.upper()]
    except KeyError:
        raise CommandError(message) from None
