"""
kitsune_client - RPC client for the kitsune virtualization service.

    transport.py   → connection & JSON-over-TCP framing
    proto.py       → v1 message types and the generic JSON codec
    registries.py  → image / virtual machine registry method tables
    client.py      → the client handle bundling both registries
"""

from .client import KitsuneClient  # noqa: F401
from .registries import ImageRegistryClient, RegistryClient, RpcMethod, VmRegistryClient  # noqa: F401
from .transport import KitsuneTransport, TransportConfig, TransportError, parse_target  # noqa: F401

__all__ = [
    "KitsuneClient",
    "RegistryClient",
    "ImageRegistryClient",
    "VmRegistryClient",
    "RpcMethod",
    "KitsuneTransport",
    "TransportConfig",
    "TransportError",
    "parse_target",
]

__version__ = "0.1.0"
