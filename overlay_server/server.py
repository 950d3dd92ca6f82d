"""
Overlay content server.

Serves the overlay page that the renderer loads as the visual source of the
stream. Only the page itself is exposed; query parameters are left for the
page's own script to read.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from aiohttp import web

logger = logging.getLogger(__name__)

OVERLAY_PORT = 8080
OVERLAY_HOST = "127.0.0.1"
ASSET_PATHS = ("/", "/overlay.html")
DEFAULT_ASSET = Path(__file__).parent / "static" / "overlay.html"


class ContentServerError(Exception):
    """Raised when the overlay server cannot start."""


class ContentServer:
    """
    Minimal HTTP server exposing the overlay page.

    ``GET /`` and ``GET /overlay.html`` return the page (query strings are
    ignored); every other path is a 404.

    Example:
        >>> server = ContentServer()
        >>> await server.start()
        >>> server.url
        'http://127.0.0.1:8080/'
        >>> await server.stop()
    """

    def __init__(
        self,
        port: int = OVERLAY_PORT,
        host: str = OVERLAY_HOST,
        asset_path: Union[str, Path] = DEFAULT_ASSET,
    ):
        """
        Initialize the server.

        Args:
            port: TCP port to bind (0 picks a free port)
            host: Interface to bind
            asset_path: HTML file to serve
        """
        self.host = host
        self.port = port
        self.asset_path = Path(asset_path)

        self._app = web.Application()
        self._app.router.add_get("/{tail:.*}", self._handle_request)
        self._runner: Optional[web.AppRunner] = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    @property
    def url(self) -> str:
        """Base URL of the running server."""
        return f"http://{self.host}:{self.port}/"

    async def start(self) -> None:
        """
        Bind the port and start serving.

        Raises:
            ContentServerError: If the port cannot be bound
        """
        if self._runner is not None:
            return

        logger.info(f"Looking for overlay at: {self.asset_path} (exists: {self.asset_path.exists()})")

        runner = web.AppRunner(self._app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)

        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise ContentServerError(
                f"Could not bind overlay server to {self.host}:{self.port}: {e}"
            ) from e

        self._runner = runner
        # Resolve the real port when 0 was requested
        self.port = runner.addresses[0][1]
        logger.info(f"Overlay server running at {self.url}")

    async def stop(self) -> None:
        """Stop accepting connections and release the port."""
        if self._runner is None:
            return

        runner, self._runner = self._runner, None
        await runner.cleanup()
        logger.info("Overlay server stopped")

    async def _handle_request(self, request: web.Request) -> web.Response:
        # request.path never includes the query string
        path = request.path
        logger.debug(f"Request: {request.path_qs} -> Path: {path}")

        if path not in ASSET_PATHS:
            logger.debug(f"404 for: {path}")
            return web.Response(status=404, text="Not found")

        try:
            data = self.asset_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading overlay: {e}")
            return web.Response(status=500, text=f"Error loading overlay: {e}")

        logger.debug(f"Serving overlay ({len(data)} bytes)")
        return web.Response(body=data, content_type="text/html")
