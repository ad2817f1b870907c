"""kitsh CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from .commands import build_registry
from .context import ShellContext
from .history import default_history_path
from .pipeline import execute

LOG = logging.getLogger("kitsh.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kitsh", description="A CLI for kitsune's RPC API")
    parser.add_argument(
        "-t",
        "--target",
        "--host",
        dest="target",
        default=os.environ.get("KITSUNE_TARGET"),
        help="The kitsune target to connect to (env KITSUNE_TARGET)",
    )
    parser.add_argument("--ssl", action="store_true", help="Open a TLS connection instead of plain TCP")
    parser.add_argument("--no-pretty", action="store_true", help="Print JSON / bare values instead of tables")
    parser.add_argument("--log-level", default=os.environ.get("KITSH_LOG", "WARNING"), help="Logging level (default WARNING)")
    parser.add_argument(
        "--history",
        type=Path,
        default=os.environ.get("KITSH_HISTORY"),
        help="Path to the console history file",
    )
    parser.add_argument("--no-history", action="store_true", help="Do not persist console history")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command to run (see 'help')")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    if not args.command:
        parser.print_help()
        return 0
    ctx = ShellContext(
        target=args.target,
        ssl=args.ssl,
        pretty=not args.no_pretty,
        history_path=Path(args.history) if args.history else default_history_path(),
        history_enabled=not args.no_history,
    )
    registry = build_registry()
    try:
        return execute(ctx, registry, list(args.command))
    except KeyboardInterrupt:
        ctx.out.write()
        return 130
    finally:
        ctx.disconnect()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
