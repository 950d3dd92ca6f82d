"""Overlay content server for the stream worker."""

from overlay_server.server import (
    ASSET_PATHS,
    OVERLAY_PORT,
    ContentServer,
    ContentServerError,
)

__all__ = ["ASSET_PATHS", "OVERLAY_PORT", "ContentServer", "ContentServerError"]
