"""Render client: the browser window that shows the overlay on the virtual display."""

from renderer.browser import RenderClient, RenderError, build_overlay_url

__all__ = ["RenderClient", "RenderError", "build_overlay_url"]
