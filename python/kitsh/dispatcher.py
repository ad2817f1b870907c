"""Dynamic dispatcher for ``<registry>.<method> [json]`` commands.

The dispatcher never needs to know a method's request or response type at
the call site: it asks the catalog for the descriptor, builds the zero
valued request, fills it from JSON, invokes it and turns the typed reply
back into plain JSON data.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from kitsune_client import proto

from .catalog import MethodDescriptor, RegistryCatalog
from .errors import CommandSyntaxError, MalformedPayload, RemoteError
from .output import json_dump

LOGGER = logging.getLogger("kitsh.dispatcher")

EMPTY_PAYLOAD = "{}"
ERROR_FIELD = "error"


@dataclass
class InvocationResult:
    """Successful reply, already reduced to JSON-compatible data."""

    descriptor: MethodDescriptor
    value: Any

    def render(self, *, pretty: bool = True) -> str:
        return json_dump(self.value, pretty=pretty)


def split_method(command: str) -> tuple[str, str]:
    alias, sep, method = command.partition(".")
    if not sep or not alias or not method:
        raise CommandSyntaxError("invalid syntax for first parameter: <registry>.<method>")
    return alias, method


class Dispatcher:
    """Resolves and invokes remote operations through a registry catalog."""

    def __init__(self, catalog: RegistryCatalog) -> None:
        self.catalog = catalog

    def run(self, argv: List[str]) -> InvocationResult:
        """Dispatch ``[<alias>.<Method>, *payload_tokens]``."""
        if not argv:
            raise CommandSyntaxError("invalid syntax: <registry>.<method> [data]")
        command, *rest = argv
        payload = " ".join(rest) if rest else None
        alias, method = split_method(command)
        return self.call(alias, method, payload)

    def call(self, alias: str, method: str, payload: Optional[str] = None) -> InvocationResult:
        descriptor = self.catalog.resolve(alias, method)
        return self.invoke(descriptor, payload)

    def invoke(self, descriptor: MethodDescriptor, payload: Optional[str] = None) -> InvocationResult:
        request = self.build_request(descriptor, payload)
        LOGGER.debug("invoking %s", descriptor.qualified_name)
        # TransportError propagates untouched; there is no reply to interpret.
        response = descriptor.invoker(request)
        if descriptor.streaming:
            return InvocationResult(descriptor, [proto.to_dict(item) for item in response])
        error = getattr(response, ERROR_FIELD, None)
        if isinstance(error, proto.Error):
            raise RemoteError(error.type, error.msg)
        value = proto.to_dict(response)
        if isinstance(value, dict):
            value.pop(ERROR_FIELD, None)
        return InvocationResult(descriptor, value)

    @staticmethod
    def build_request(descriptor: MethodDescriptor, payload: Optional[str]) -> Any:
        text = payload if payload and payload.strip() else EMPTY_PAYLOAD
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(descriptor.qualified_name, exc) from exc
        try:
            return proto.from_dict(descriptor.request_type, data)
        except proto.DecodeError as exc:
            raise MalformedPayload(descriptor.qualified_name, exc) from exc
