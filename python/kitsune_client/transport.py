"""
Transport layer for kitsune_client.

Responsibilities:
    * Manage newline-delimited JSON-over-TCP connections to a kitsune
      endpoint, optionally wrapped in TLS.
    * Provide a synchronous request/response helper with sequence IDs.
    * Track the connection state (disconnected, connecting, connected).
"""

from __future__ import annotations

import json
import logging
import socket
import ssl
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

LOGGER = logging.getLogger("kitsune_client.transport")

DEFAULT_PORT = 50051


class TransportError(RuntimeError):
    """Raised when the transport cannot complete an operation."""


def parse_target(target: str, *, default_port: int = DEFAULT_PORT) -> Tuple[str, int]:
    """Split ``host[:port]`` into its parts."""
    text = (target or "").strip()
    if not text:
        raise TransportError("empty target")
    if text.startswith("["):
        host, _, rest = text[1:].partition("]")
        port_text = rest[1:] if rest.startswith(":") else ""
    elif text.count(":") == 1:
        host, _, port_text = text.partition(":")
    else:
        host, port_text = text, ""
    if not port_text:
        return host or "localhost", default_port
    try:
        port = int(port_text)
    except ValueError as exc:
        raise TransportError(f"invalid port in target {target!r}") from exc
    return host or "localhost", port


@dataclass
class TransportConfig:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    use_ssl: bool = False
    connect_timeout: float = 5.0
    # None blocks until the service answers.
    read_timeout: Optional[float] = None

    @classmethod
    def from_target(cls, target: str, *, use_ssl: bool = False, **kwargs: Any) -> "TransportConfig":
        host, port = parse_target(target)
        return cls(host=host, port=port, use_ssl=use_ssl, **kwargs)


@dataclass
class KitsuneTransport:
    """Thin synchronous transport wrapper (JSON-over-TCP RPC)."""

    config: TransportConfig = field(default_factory=TransportConfig)

    _sock: Optional[socket.socket] = field(init=False, default=None)
    _reader: Any = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _state_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _state: str = field(init=False, default="disconnected")
    _next_id: int = field(init=False, default=1)

    #
    # Connection lifecycle helpers
    #
    @property
    def state(self) -> str:
        with self._state_lock:
            return self._state

    def connect(self) -> None:
        """Open the connection to the kitsune endpoint."""
        if self._sock:
            return
        self._set_state("connecting")
        try:
            sock = self._open_socket()
        except TransportError:
            self._set_state("disconnected")
            raise
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._set_state("connected")

    def close(self) -> None:
        with self._lock:
            self._handle_disconnect()

    def send_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send a JSON request and wait for its reply."""
        with self._lock:
            if not self._sock:
                self.connect()
            request = dict(payload)
            request["seq"] = self._next_id
            self._next_id += 1
            data = json.dumps(request).encode("utf-8") + b"\n"
            LOGGER.debug("-> %s", request)
            try:
                assert self._sock is not None  # mypy guard
                self._sock.sendall(data)
                line = self._reader.readline()
            except OSError as exc:
                self._handle_disconnect()
                raise TransportError(f"rpc failed: {exc}") from exc
            if not line:
                self._handle_disconnect()
                raise TransportError("connection closed")
            try:
                message = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise TransportError(f"invalid reply: {exc}") from exc
            if not isinstance(message, dict):
                raise TransportError("invalid reply: expected a JSON object")
            LOGGER.debug("<- %s", message)
            return message

    #
    # Internal helpers
    #
    def _open_socket(self) -> socket.socket:
        address = (self.config.host, self.config.port)
        try:
            sock = socket.create_connection(address, timeout=self.config.connect_timeout)
        except OSError as exc:
            raise TransportError(f"connect failed: {exc}") from exc
        sock.settimeout(self.config.read_timeout)
        if not self.config.use_ssl:
            return sock
        context = ssl.create_default_context()
        try:
            return context.wrap_socket(sock, server_hostname=self.config.host)
        except (ssl.SSLError, OSError) as exc:
            sock.close()
            raise TransportError(f"tls handshake failed: {exc}") from exc

    def _handle_disconnect(self) -> None:
        reader = self._reader
        if reader is not None:
            try:
                reader.close()
            except OSError:
                pass
        sock = self._sock
        if sock:
            try:
                sock.close()
            except OSError:
                pass
        self._sock = None
        self._reader = None
        self._set_state("disconnected")

    def _set_state(self, new_state: str) -> None:
        with self._state_lock:
            if self._state == new_state:
                return
            self._state = new_state
        LOGGER.debug("transport %s:%s %s", self.config.host, self.config.port, new_state)
