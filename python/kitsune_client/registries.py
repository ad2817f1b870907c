"""Registry clients for the kitsune API.

Each registry exposes an explicit table of :class:`RpcMethod` entries that
maps a method name to its request/response message types.  The table is
what generic callers (the shell's dynamic dispatcher) introspect; typed
wrappers are provided for the statically known commands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Type

from . import proto
from .transport import TransportError

LOGGER = logging.getLogger("kitsune_client.registries")


class RequestSender(Protocol):
    def send_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class RpcMethod:
    """Signature of one remote operation."""

    name: str
    request_type: Type[Any]
    response_type: Type[Any]
    streaming: bool = False


class RegistryClient:
    """Generic client for one kitsune registry service."""

    service: str = ""
    methods: Tuple[RpcMethod, ...] = ()

    def __init__(self, transport: RequestSender) -> None:
        self.transport = transport
        self._table: Dict[str, RpcMethod] = {method.name: method for method in self.methods}

    def call(self, name: str, request: Any) -> Any:
        """Invoke *name* with a request message and decode the reply.

        Streaming methods return a list of response messages.
        """
        method = self._table.get(name)
        if method is None:
            raise KeyError(f"{self.service} has no method {name!r}")
        if not isinstance(request, method.request_type):
            raise TypeError(f"{name} expects {method.request_type.__name__}, got {type(request).__name__}")
        response = self.transport.send_request(
            {"service": self.service, "method": name, "request": proto.to_dict(request)}
        )
        if response.get("status") != "ok":
            raise TransportError(f"{name} rejected: {response.get('error', 'unknown error')}")
        result = response.get("result")
        try:
            if method.streaming:
                if result is None:
                    return []
                if not isinstance(result, list):
                    raise proto.DecodeError(f"{name}: expected a stream of messages")
                return [proto.from_dict(method.response_type, item) for item in result]
            return proto.from_dict(method.response_type, result if result is not None else {})
        except proto.DecodeError as exc:
            raise TransportError(f"invalid {name} reply: {exc}") from exc

    def get_metadata(self, uuid: str) -> proto.GetMetadataResponse:
        return self.call("GetMetadata", proto.GetMetadataRequest(id=proto.UUID(uuid)))

    def set_metadata(self, uuid: str, data: Dict[str, str]) -> proto.SetMetadataResponse:
        request = proto.SetMetadataRequest(id=proto.UUID(uuid), meta=proto.MetadataMap(dict(data)))
        return self.call("SetMetadata", request)


_METADATA_METHODS = (
    RpcMethod("GetMetadata", proto.GetMetadataRequest, proto.GetMetadataResponse),
    RpcMethod("SetMetadata", proto.SetMetadataRequest, proto.SetMetadataResponse),
)


class ImageRegistryClient(RegistryClient):
    service = "kitsune.proto.v1.ImageRegistryService"
    methods = (
        RpcMethod("GetImages", proto.Empty, proto.Image, streaming=True),
        RpcMethod("CreateImage", proto.CreateImageRequest, proto.CreateImageResponse),
        RpcMethod("DeleteImage", proto.DeleteImageRequest, proto.DeleteImageResponse),
    ) + _METADATA_METHODS

    def get_images(self) -> List[proto.Image]:
        return self.call("GetImages", proto.Empty())

    def create_image(
        self,
        image_format: proto.ImageFormat,
        size: int,
        data: Optional[Dict[str, str]] = None,
    ) -> proto.CreateImageResponse:
        request = proto.CreateImageRequest(format=image_format, size=size, data=proto.MetadataMap(dict(data or {})))
        return self.call("CreateImage", request)

    def delete_image(self, uuid: str) -> proto.DeleteImageResponse:
        return self.call("DeleteImage", proto.DeleteImageRequest(id=proto.UUID(uuid)))


class VmRegistryClient(RegistryClient):
    service = "kitsune.proto.v1.VirtualMachineRegistryService"
    methods = (
        RpcMethod("GetVirtualMachines", proto.Empty, proto.VirtualMachine, streaming=True),
        RpcMethod("CreateVirtualMachine", proto.CreateVirtualMachineRequest, proto.CreateVirtualMachineResponse),
        RpcMethod("DeleteVirtualMachine", proto.DeleteVirtualMachineRequest, proto.DeleteVirtualMachineResponse),
        RpcMethod("IsAlive", proto.IsAliveRequest, proto.IsAliveResponse),
        RpcMethod("GetAttachedImages", proto.GetAttachedImagesRequest, proto.GetAttachedImagesResponse),
        RpcMethod("AttachImage", proto.AttachImageRequest, proto.AttachImageResponse),
        RpcMethod("DetachImage", proto.DetachImageRequest, proto.DetachImageResponse),
        RpcMethod("GetVNCServers", proto.GetVNCServersRequest, proto.GetVNCServersResponse),
        RpcMethod("SendPowerAction", proto.SendPowerActionRequest, proto.SendPowerActionResponse),
    ) + _METADATA_METHODS

    def get_virtual_machines(self) -> List[proto.VirtualMachine]:
        return self.call("GetVirtualMachines", proto.Empty())

    def create_virtual_machine(
        self,
        arch: proto.Architecture,
        memory_size: int,
        data: Optional[Dict[str, str]] = None,
    ) -> proto.CreateVirtualMachineResponse:
        request = proto.CreateVirtualMachineRequest(
            arch=arch,
            memory_size=memory_size,
            data=proto.MetadataMap(dict(data or {})),
        )
        return self.call("CreateVirtualMachine", request)

    def delete_virtual_machine(self, uuid: str) -> proto.DeleteVirtualMachineResponse:
        return self.call("DeleteVirtualMachine", proto.DeleteVirtualMachineRequest(id=proto.UUID(uuid)))

    def is_alive(self, uuid: str) -> proto.IsAliveResponse:
        return self.call("IsAlive", proto.IsAliveRequest(id=proto.UUID(uuid)))

    def get_attached_images(self, uuid: str) -> proto.GetAttachedImagesResponse:
        return self.call("GetAttachedImages", proto.GetAttachedImagesRequest(id=proto.UUID(uuid)))

    def attach_image(self, machine: str, image: str) -> proto.AttachImageResponse:
        request = proto.AttachImageRequest(machine=proto.UUID(machine), image=proto.UUID(image))
        return self.call("AttachImage", request)

    def detach_image(self, machine: str, image: str) -> proto.DetachImageResponse:
        request = proto.DetachImageRequest(machine=proto.UUID(machine), image=proto.UUID(image))
        return self.call("DetachImage", request)

    def get_vnc_servers(self, uuid: str) -> proto.GetVNCServersResponse:
        return self.call("GetVNCServers", proto.GetVNCServersRequest(id=proto.UUID(uuid)))

    def send_power_action(self, machine: str, action: proto.PowerAction) -> proto.SendPowerActionResponse:
        request = proto.SendPowerActionRequest(machine=proto.UUID(machine), action=action)
        return self.call("SendPowerAction", request)


def find_web_socket(servers: Iterable[proto.VNCServer]) -> Optional[proto.VNCServerSocket]:
    """Return the first WebSocket-capable VNC socket, if any."""
    for server in servers:
        for sock in server.sockets:
            if sock.is_web_socket:
                return sock
    return None
