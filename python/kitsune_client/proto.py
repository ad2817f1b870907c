"""
Message types of the kitsune v1 API.

Every message is a plain dataclass whose zero value is what ``cls()``
returns: numbers are 0, strings are empty, enums take their first member,
nested messages are ``None`` and repeated/map fields are empty.  The
generic :func:`to_dict` / :func:`from_dict` helpers convert between these
dataclasses and JSON-compatible structures using the field type hints, so
callers never need per-message codecs.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

LOGGER = logging.getLogger("kitsune_client.proto")

T = TypeVar("T")

# Field metadata for uint32/uint64 values of the wire contract.
UNSIGNED = {"unsigned": True}


class DecodeError(ValueError):
    """Raised when JSON data does not fit a message shape."""


# ----------------------------------------------------------------------
# Enums
# ----------------------------------------------------------------------
class ImageFormat(enum.IntEnum):
    RAW = 0
    QCOW2 = 1
    VDI = 2
    VMDK = 3
    VHDX = 4


class MediaType(enum.IntEnum):
    DISK = 0
    CDROM = 1


class Architecture(enum.IntEnum):
    X86_64 = 0
    I386 = 1
    AARCH64 = 2
    ARM = 3
    RISCV64 = 4
    PPC64 = 5


class PowerAction(enum.IntEnum):
    START = 0
    STOP = 1
    RESET = 2
    PAUSE = 3
    RESUME = 4
    SHUTDOWN = 5


# ----------------------------------------------------------------------
# Common messages
# ----------------------------------------------------------------------
@dataclass
class Empty:
    pass


@dataclass
class UUID:
    value: str = ""


@dataclass
class Error:
    type: str = ""
    msg: str = ""


@dataclass
class MetadataMap:
    data: Dict[str, str] = field(default_factory=dict)


@dataclass
class GetMetadataRequest:
    id: Optional[UUID] = None


@dataclass
class GetMetadataResponse:
    meta: Optional[MetadataMap] = None
    error: Optional[Error] = None


@dataclass
class SetMetadataRequest:
    id: Optional[UUID] = None
    meta: Optional[MetadataMap] = None


@dataclass
class SetMetadataResponse:
    error: Optional[Error] = None


# ----------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------
@dataclass
class Image:
    id: Optional[UUID] = None
    format: ImageFormat = ImageFormat.RAW
    size: int = field(default=0, metadata=UNSIGNED)
    read_only: bool = False
    media_type: MediaType = MediaType.DISK
    data: Optional[MetadataMap] = None


@dataclass
class CreateImageRequest:
    format: ImageFormat = ImageFormat.RAW
    size: int = field(default=0, metadata=UNSIGNED)
    data: Optional[MetadataMap] = None


@dataclass
class CreateImageResponse:
    image: Optional[Image] = None
    error: Optional[Error] = None


@dataclass
class DeleteImageRequest:
    id: Optional[UUID] = None


@dataclass
class DeleteImageResponse:
    error: Optional[Error] = None


# ----------------------------------------------------------------------
# Virtual machines
# ----------------------------------------------------------------------
@dataclass
class VirtualMachine:
    id: Optional[UUID] = None
    arch: Architecture = Architecture.X86_64
    memory_size: int = field(default=0, metadata=UNSIGNED)
    data: Optional[MetadataMap] = None


@dataclass
class CreateVirtualMachineRequest:
    arch: Architecture = Architecture.X86_64
    memory_size: int = field(default=0, metadata=UNSIGNED)
    data: Optional[MetadataMap] = None


@dataclass
class CreateVirtualMachineResponse:
    machine: Optional[VirtualMachine] = None
    error: Optional[Error] = None


@dataclass
class DeleteVirtualMachineRequest:
    id: Optional[UUID] = None


@dataclass
class DeleteVirtualMachineResponse:
    error: Optional[Error] = None


@dataclass
class IsAliveRequest:
    id: Optional[UUID] = None


@dataclass
class IsAliveResponse:
    alive: Optional[bool] = None
    error: Optional[Error] = None


@dataclass
class GetAttachedImagesRequest:
    id: Optional[UUID] = None


@dataclass
class GetAttachedImagesResponse:
    images: List[UUID] = field(default_factory=list)
    error: Optional[Error] = None


@dataclass
class AttachImageRequest:
    machine: Optional[UUID] = None
    image: Optional[UUID] = None


@dataclass
class AttachImageResponse:
    error: Optional[Error] = None


@dataclass
class DetachImageRequest:
    machine: Optional[UUID] = None
    image: Optional[UUID] = None


@dataclass
class DetachImageResponse:
    error: Optional[Error] = None


@dataclass
class VNCServerSocket:
    port: int = field(default=0, metadata=UNSIGNED)
    is_web_socket: bool = False


@dataclass
class VNCServer:
    display: str = ""
    sockets: List[VNCServerSocket] = field(default_factory=list)


@dataclass
class GetVNCServersRequest:
    id: Optional[UUID] = None


@dataclass
class GetVNCServersResponse:
    servers: List[VNCServer] = field(default_factory=list)
    error: Optional[Error] = None


@dataclass
class SendPowerActionRequest:
    machine: Optional[UUID] = None
    action: PowerAction = PowerAction.START


@dataclass
class SendPowerActionResponse:
    error: Optional[Error] = None


# ----------------------------------------------------------------------
# Generic codec
# ----------------------------------------------------------------------
def to_dict(message: Any) -> Any:
    """Convert a message (or list of messages) to JSON-compatible data.

    Unset nested messages are omitted and enums are rendered by name.
    """
    if isinstance(message, list):
        return [to_dict(item) for item in message]
    if isinstance(message, enum.Enum):
        return message.name
    if isinstance(message, dict):
        return {str(key): to_dict(value) for key, value in message.items()}
    if dataclasses.is_dataclass(message) and not isinstance(message, type):
        result: Dict[str, Any] = {}
        for item in dataclasses.fields(message):
            value = getattr(message, item.name)
            if value is None:
                continue
            result[item.name] = to_dict(value)
        return result
    return message


def from_dict(cls: Type[T], data: Any, *, path: str = "") -> T:
    """Build a ``cls`` message from decoded JSON ``data``.

    Missing keys keep their zero value; unknown keys are ignored.
    """
    where = path or cls.__name__
    if not isinstance(data, dict):
        raise DecodeError(f"{where}: expected an object, got {_json_kind(data)}")
    hints = typing.get_type_hints(cls)
    kwargs: Dict[str, Any] = {}
    known = set()
    for item in dataclasses.fields(cls):
        known.add(item.name)
        if item.name not in data or data[item.name] is None:
            continue
        value = _decode(hints[item.name], data[item.name], f"{where}.{item.name}")
        if item.metadata.get("unsigned") and value < 0:
            raise DecodeError(f"{where}.{item.name}: expected an unsigned integer, got {value}")
        kwargs[item.name] = value
    unknown = sorted(set(data) - known)
    if unknown:
        LOGGER.debug("%s: ignoring unknown fields %s", where, unknown)
    return cls(**kwargs)


def _decode(hint: Any, value: Any, path: str) -> Any:
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is typing.Union:
        inner = [arg for arg in args if arg is not type(None)]
        return _decode(inner[0], value, path)
    if origin in (list, List):
        if not isinstance(value, list):
            raise DecodeError(f"{path}: expected an array, got {_json_kind(value)}")
        return [_decode(args[0], item, f"{path}[{idx}]") for idx, item in enumerate(value)]
    if origin in (dict, Dict):
        if not isinstance(value, dict):
            raise DecodeError(f"{path}: expected an object, got {_json_kind(value)}")
        return {key: _decode(args[1], item, f"{path}.{key}") for key, item in value.items()}
    if isinstance(hint, type) and issubclass(hint, enum.IntEnum):
        return _decode_enum(hint, value, path)
    if hint is bool:
        if not isinstance(value, bool):
            raise DecodeError(f"{path}: expected a boolean, got {_json_kind(value)}")
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"{path}: expected an integer, got {_json_kind(value)}")
        return value
    if hint is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"{path}: expected a number, got {_json_kind(value)}")
        return float(value)
    if hint is str:
        if not isinstance(value, str):
            raise DecodeError(f"{path}: expected a string, got {_json_kind(value)}")
        return value
    if dataclasses.is_dataclass(hint):
        return from_dict(hint, value, path=path)
    raise DecodeError(f"{path}: unsupported field type {hint!r}")


def _decode_enum(enum_cls: Type[enum.IntEnum], value: Any, path: str) -> enum.IntEnum:
    if isinstance(value, str):
        try:
            return enum_cls[value.upper()]
        except KeyError:
            pass
    elif isinstance(value, int) and not isinstance(value, bool):
        try:
            return enum_cls(value)
        except ValueError:
            pass
    choices = ", ".join(member.name for member in enum_cls)
    raise DecodeError(f"{path}: invalid {enum_cls.__name__} {value!r} (expected one of {choices})")


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
