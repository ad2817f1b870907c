"""Registry catalog: maps ``<alias>.<Method>`` names to remote operations."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Protocol, Type

from kitsune_client import KitsuneClient, RpcMethod

from .errors import UnknownMethod, UnknownRegistry

IMAGE_ALIAS = "img"
VM_ALIAS = "vm"


class RegistryHandle(Protocol):
    """What the catalog needs from a registry client."""

    methods: Iterable[RpcMethod]

    def call(self, name: str, request: Any) -> Any:
        ...


@dataclass(frozen=True)
class MethodDescriptor:
    """Identity and shape of one invocable remote operation."""

    registry: str
    name: str
    request_type: Type[Any]
    response_type: Type[Any]
    streaming: bool
    invoker: Callable[[Any], Any]

    @property
    def qualified_name(self) -> str:
        return f"{self.registry}.{self.name}"


class RegistryCatalog:
    """Read-only mapping from registry alias to a live registry handle."""

    def __init__(self, registries: Mapping[str, RegistryHandle]) -> None:
        self._registries: Dict[str, RegistryHandle] = dict(registries)
        self._descriptors: Dict[str, Dict[str, MethodDescriptor]] = {}
        for alias, handle in self._registries.items():
            table: Dict[str, MethodDescriptor] = {}
            for method in handle.methods:
                table[method.name] = MethodDescriptor(
                    registry=alias,
                    name=method.name,
                    request_type=method.request_type,
                    response_type=method.response_type,
                    streaming=method.streaming,
                    invoker=functools.partial(handle.call, method.name),
                )
            self._descriptors[alias] = table

    @classmethod
    def from_client(cls, client: KitsuneClient) -> "RegistryCatalog":
        return cls({IMAGE_ALIAS: client.image_registry, VM_ALIAS: client.vm_registry})

    def aliases(self) -> tuple[str, ...]:
        return tuple(self._registries)

    def resolve(self, alias: str, method: str) -> MethodDescriptor:
        table = self._descriptors.get(alias)
        if table is None:
            raise UnknownRegistry(alias, self.aliases())
        descriptor = table.get(method)
        if descriptor is None:
            raise UnknownMethod(alias, method)
        return descriptor

    def method_names(self) -> List[str]:
        """Every ``alias.Method`` name, without invoking anything."""
        names: List[str] = []
        for alias, table in self._descriptors.items():
            names.extend(f"{alias}.{name}" for name in table)
        return sorted(names)
