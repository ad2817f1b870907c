"""Command resolution shared by the one-shot CLI and the console."""

from __future__ import annotations

import logging
from typing import List

from .commands import CommandRegistry
from .context import ShellContext
from .dispatcher import Dispatcher
from .errors import TRANSPORT_EXIT_CODE, CommandSyntaxError, KitshError, TransportError
from .output import emit_error

LOGGER = logging.getLogger("kitsh.pipeline")


def execute(ctx: ShellContext, registry: CommandRegistry, argv: List[str]) -> int:
    """Run one command; every failure is reported once on the error stream."""
    try:
        return resolve(ctx, registry, argv)
    except TransportError as exc:
        LOGGER.debug("transport failure", exc_info=True)
        emit_error(ctx, message=f"rpc error: {exc}")
        return TRANSPORT_EXIT_CODE
    except KitshError as exc:
        emit_error(ctx, message=str(exc))
        return exc.exit_code


def resolve(ctx: ShellContext, registry: CommandRegistry, argv: List[str]) -> int:
    """Static command tree first, then ``<registry>.<method>`` dispatch."""
    if not argv:
        raise CommandSyntaxError("no command given")
    name, *args = argv
    command = registry.get(name)
    if command is not None:
        return command.run(ctx, args)
    if "." not in name:
        raise CommandSyntaxError(f"unknown command: {name}")
    result = Dispatcher(ctx.catalog()).run(argv)
    ctx.out.write(result.render(pretty=ctx.pretty))
    return 0
