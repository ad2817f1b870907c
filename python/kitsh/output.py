"""Output helpers for kitsh.

Nothing in kitsh prints directly; commands write through the
:class:`OutputSink` carried by the shell context so tests and nested
console invocations can redirect output.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence, TextIO

if TYPE_CHECKING:  # pragma: no cover
    from .context import ShellContext


@dataclass
class OutputSink:
    """Pair of text streams used for results and errors.

    Unset streams resolve to the current ``sys.stdout`` / ``sys.stderr`` at
    write time.
    """

    stdout: Optional[TextIO] = None
    stderr: Optional[TextIO] = None

    def write(self, text: str = "") -> None:
        print(text, file=self.stdout or sys.stdout)

    def error(self, text: str) -> None:
        print(text, file=self.stderr or sys.stderr)


def json_dump(payload: Any, *, pretty: bool = True) -> str:
    if pretty:
        return json.dumps(payload, indent=2)
    return json.dumps(payload, separators=(",", ":"))


def emit_result(ctx: "ShellContext", *, message: str, data: Any = None) -> None:
    """Emit a successful command result."""
    if not ctx.pretty and data is not None:
        ctx.out.write(json_dump(data, pretty=False))
    else:
        ctx.out.write(message)


def emit_error(ctx: "ShellContext", *, message: str) -> None:
    """Emit one error line on the error stream."""
    ctx.out.error(f"error: {message}")


def render_table(ctx: "ShellContext", headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    """Print a left-aligned table with a header row."""
    cells = [[str(value) for value in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in cells:
        for idx, value in enumerate(row):
            widths[idx] = max(widths[idx], len(value))
    ctx.out.write(_format_row(headers, widths))
    for row in cells:
        ctx.out.write(_format_row(row, widths))


def _format_row(values: Sequence[str], widths: Sequence[int]) -> str:
    return "  ".join(f"{value:<{width}}" for value, width in zip(values, widths)).rstrip()


__all__ = ["OutputSink", "json_dump", "emit_result", "emit_error", "render_table"]
