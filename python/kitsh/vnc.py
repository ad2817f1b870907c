"""HTTP server for the noVNC viewer assets."""

from __future__ import annotations

import functools
import logging
import os
import threading
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional, Tuple

LOGGER = logging.getLogger("kitsh.vnc")

INDEX_PAGE = "vnc_lite.html"
ASSET_PREFIXES = ("/core/", "/vendor/")
DEFAULT_HTTP_HOST = ":8080"
ASSETS_ENV = "KITSH_NOVNC_DIR"


def default_assets_dir() -> Path:
    configured = os.environ.get(ASSETS_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path(__file__).resolve().parent / "novnc"


def normalise_http_host(http_host: str) -> str:
    """Prefix a bare ``:port`` with ``localhost``."""
    if http_host.startswith(":"):
        return f"localhost{http_host}"
    return http_host


def split_http_host(http_host: str) -> Tuple[str, int]:
    """Bind address for *http_host*; an empty host listens on every interface."""
    host, sep, port = http_host.rpartition(":")
    if not sep:
        return http_host, 80
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"invalid http host {http_host!r}") from exc


def vnc_host(target: str) -> str:
    """Strip the port from the kitsune target."""
    return target.split(":", 1)[0]


def viewer_url(http_host: str, target: str, port: int) -> str:
    return f"http://{normalise_http_host(http_host)}/?host={vnc_host(target)}&port={port}&path="


class _AssetHandler(SimpleHTTPRequestHandler):
    def do_GET(self) -> None:  # noqa: N802 - http.server naming
        path = self.path.split("?", 1)[0]
        if path == "/":
            self.path = f"/{INDEX_PAGE}"
            super().do_GET()
            return
        if path.startswith(ASSET_PREFIXES):
            super().do_GET()
            return
        self.send_error(HTTPStatus.NOT_FOUND)

    def do_HEAD(self) -> None:  # noqa: N802
        self.send_error(HTTPStatus.METHOD_NOT_ALLOWED)

    def list_directory(self, path):  # type: ignore[override]
        self.send_error(HTTPStatus.NOT_FOUND)
        return None

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        LOGGER.debug("%s - %s", self.address_string(), format % args)


class VncAssetServer:
    """Serves noVNC on a background thread until :meth:`stop` is called."""

    def __init__(self, http_host: str, assets_dir: Path) -> None:
        self.http_host = http_host
        self.assets_dir = Path(assets_dir)
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        if not self._server:
            raise RuntimeError("server not started")
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def start(self) -> None:
        if not (self.assets_dir / INDEX_PAGE).is_file():
            raise FileNotFoundError(f"noVNC assets not found in {self.assets_dir} (set {ASSETS_ENV})")
        host, port = split_http_host(self.http_host)
        handler = functools.partial(_AssetHandler, directory=str(self.assets_dir))
        self._server = ThreadingHTTPServer((host, port), handler)
        self._thread = threading.Thread(target=self._serve, name="kitsh-vnc-http", daemon=True)
        self._thread.start()
        LOGGER.info("serving noVNC from %s on %s:%s", self.assets_dir, *self.address)

    def _serve(self) -> None:
        server = self._server
        if server is None:
            return
        try:
            server.serve_forever()
        except OSError as exc:
            LOGGER.error("http server errored (%s)", exc)

    def stop(self) -> None:
        """Stop accepting connections and wait for the serving thread."""
        server = self._server
        if server is None:
            return
        server.shutdown()
        if self._thread is not None:
            self._thread.join()
        server.server_close()
        self._server = None
        self._thread = None
