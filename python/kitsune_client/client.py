"""Top-level kitsune client handle."""

from __future__ import annotations

import logging
from typing import Optional

from .registries import ImageRegistryClient, VmRegistryClient
from .transport import KitsuneTransport, TransportConfig

LOGGER = logging.getLogger("kitsune_client.client")


class KitsuneClient:
    """Owns one transport and the registry handles bound to it."""

    def __init__(
        self,
        target: str,
        ssl: bool = False,
        *,
        transport: Optional[KitsuneTransport] = None,
    ) -> None:
        self.target = target
        self.ssl = ssl
        self.transport = transport or KitsuneTransport(TransportConfig.from_target(target, use_ssl=ssl))
        self.image_registry = ImageRegistryClient(self.transport)
        self.vm_registry = VmRegistryClient(self.transport)
        LOGGER.debug("client created for %s (ssl=%s)", target, ssl)

    def close(self) -> None:
        self.transport.close()
