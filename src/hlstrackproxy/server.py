"""Threaded lifecycle wrapper around the proxy's uvicorn server."""

import socket
import threading
import time
from typing import Iterable, Optional

import httpx
import uvicorn

from hlstrackproxy.api.app import create_app
from hlstrackproxy.config import Config
from hlstrackproxy.core.registry import TrackRegistry
from hlstrackproxy.core.urls import build_proxied_url, build_proxy_base
from hlstrackproxy.models.track import AudioTrackDescriptor
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)


class ProxyNotRunningError(RuntimeError):
    """The proxy did not come up in time."""


class HLSProxyServer:
    """Local HLS proxy bound to a loopback port, served from a background thread.

    Typical use by the playback layer::

        server = HLSProxyServer(config)
        server.start()
        url = server.proxied_url(origin, tracks)  # hand to the player
        ...
        server.registry.clear()  # playback ended
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        registry: Optional[TrackRegistry] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize proxy server.

        Args:
            config: Application configuration (defaults if None)
            registry: Track registry (a fresh one if None)
            http_client: Optional client for origin fetches
        """
        self.config = config or Config.from_defaults()
        self.registry = registry or TrackRegistry()
        self._http_client = http_client
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.port = 0

    @property
    def is_ready(self) -> bool:
        """Whether the server is listening."""
        return self.port > 0

    @property
    def proxy_base(self) -> Optional[str]:
        if not self.is_ready:
            return None
        return build_proxy_base(self.config.server.host, self.port)

    def start(self) -> int:
        """Start listening if not already running.

        Returns:
            The bound port

        Raises:
            ProxyNotRunningError: If the server does not start in time
            OSError: If the port cannot be bound
        """
        with self._lock:
            if self.is_ready:
                return self.port

            sock = self._bind()
            port = sock.getsockname()[1]
            app = create_app(
                self.config,
                self.registry,
                build_proxy_base(self.config.server.host, port),
                self._http_client,
            )
            uvicorn_config = uvicorn.Config(
                app,
                log_config=None,
                access_log=False,
                lifespan="on",
            )
            server = uvicorn.Server(uvicorn_config)
            thread = threading.Thread(
                target=server.run,
                kwargs={"sockets": [sock]},
                name="hls-proxy",
                daemon=True,
            )
            thread.start()

            deadline = time.monotonic() + self.config.server.startup_timeout_seconds
            while not server.started:
                if not thread.is_alive() or time.monotonic() > deadline:
                    server.should_exit = True
                    sock.close()
                    logger.error("HLS proxy failed to start", port=port)
                    raise ProxyNotRunningError(f"HLS proxy failed to start on port {port}")
                time.sleep(0.01)

            self._server = server
            self._thread = thread
            self.port = port

        logger.info("HLS proxy server started", host=self.config.server.host, port=port)
        return port

    def _bind(self) -> socket.socket:
        host = self.config.server.host
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, self.config.server.port))
        except OSError:
            sock.close()
            raise
        return sock

    def stop(self) -> None:
        """Stop listening and drop in-progress connections."""
        with self._lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None
            self.port = 0

        if server is None:
            return

        server.should_exit = True
        server.force_exit = True
        if thread is not None:
            thread.join(timeout=5)
        logger.info("HLS proxy server stopped")

    def wait(self) -> None:
        """Block until the server thread exits."""
        thread = self._thread
        while thread is not None and thread.is_alive():
            thread.join(timeout=0.5)

    def proxied_url(
        self,
        origin_url: str,
        tracks: Iterable[AudioTrackDescriptor],
    ) -> Optional[str]:
        """Register a session's tracks and wrap its origin manifest URL.

        Args:
            origin_url: Absolute origin manifest URL
            tracks: The asset's audio track descriptors in API order

        Returns:
            Proxied URL, or None if the server is not listening
        """
        proxy_base = self.proxy_base
        if proxy_base is None:
            logger.warning("Proxy server not running", origin_url=origin_url)
            return None

        self.registry.register(tracks)
        return build_proxied_url(proxy_base, origin_url)

    def __enter__(self) -> "HLSProxyServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
