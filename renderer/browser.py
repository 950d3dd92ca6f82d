"""
Render client.

Drives a visible Chromium window (through Playwright) that shows the overlay
page on the virtual display. FFmpeg captures that display, so the window
geometry must match the capture geometry; both come from the same
QualityProfile.
"""

import asyncio
import logging
import os
from typing import Dict, List, Optional
from urllib.parse import quote, urlencode

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ffmpeg_manager.config import CAPTURE_DISPLAY, QualityProfile

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT = 60.0
SETTLE_DELAY = 2.0
CLOSE_TIMEOUT = 10.0


class RenderError(Exception):
    """Raised when the browser cannot be launched or the overlay cannot load."""


def build_overlay_url(base_url: str, title: str, playlist_url: Optional[str] = None) -> str:
    """
    Build the overlay URL with display parameters for the page script.

    Args:
        base_url: Content server base URL
        title: Overlay title text
        playlist_url: Optional playlist the page should play

    Returns:
        URL with percent-encoded query parameters
    """
    params: Dict[str, str] = {"title": title}
    if playlist_url:
        params["playlist"] = playlist_url
    return f"{base_url}?{urlencode(params, quote_via=quote)}"


class RenderClient:
    """Owns the Playwright instance, the browser and its single page."""

    def __init__(
        self,
        profile: QualityProfile,
        navigation_timeout: float = NAVIGATION_TIMEOUT,
        settle_delay: float = SETTLE_DELAY,
        display: str = CAPTURE_DISPLAY,
    ):
        """
        Initialize the render client.

        Args:
            profile: Quality profile providing window and viewport size
            navigation_timeout: Upper bound for loading the overlay (seconds)
            settle_delay: Pause after navigation for page animations (seconds)
            display: X display the window must appear on
        """
        self.profile = profile
        self.navigation_timeout = navigation_timeout
        self.settle_delay = settle_delay
        self.display = display

        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None

    @property
    def is_open(self) -> bool:
        return self.browser is not None

    def launch_args(self) -> List[str]:
        """Chromium flags for unattended media playback in a container."""
        return [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-gpu",
            f"--window-size={self.profile.window_size}",
            "--autoplay-policy=no-user-gesture-required",
            "--use-fake-ui-for-media-stream",
            "--enable-audio-service-sandbox=false",
        ]

    def launch_env(self) -> Dict[str, str]:
        """Browser environment, pinned to the capture display."""
        env = dict(os.environ)
        env["DISPLAY"] = self.display
        return env

    async def start(self, url: str) -> None:
        """
        Launch the browser, load the overlay and wait for it to settle.

        Args:
            url: Overlay URL to navigate to

        Raises:
            RenderError: If launch or navigation fails, or navigation times out
        """
        logger.info("Launching browser...")
        timeout_ms = self.navigation_timeout * 1000

        try:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(
                headless=False,
                args=self.launch_args(),
                env=self.launch_env(),
            )
            self.page = await self.browser.new_page(
                viewport={"width": self.profile.width, "height": self.profile.height}
            )
            self.page.set_default_navigation_timeout(timeout_ms)

            logger.info(f"Navigating to: {url}")
            # Secondary resources (fonts, embeds) may be slow; the DOM is enough
            await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise RenderError(
                f"Overlay navigation timed out after {self.navigation_timeout:g}s"
            ) from e
        except PlaywrightError as e:
            raise RenderError(f"Browser failed to load overlay: {e}") from e

        # Wait a bit for animations to initialize
        await asyncio.sleep(self.settle_delay)
        logger.info("Overlay loaded successfully")

    async def close(self) -> None:
        """
        Close the browser and stop Playwright. Safe to call more than once.

        Raises:
            PlaywrightError: If the browser fails to close
            asyncio.TimeoutError: If closing takes longer than CLOSE_TIMEOUT

        Playwright itself is stopped in every case.
        """
        browser, self.browser = self.browser, None
        playwright, self._playwright = self._playwright, None
        self.page = None

        try:
            if browser is not None:
                await asyncio.wait_for(browser.close(), timeout=CLOSE_TIMEOUT)
                logger.info("Browser closed")
        finally:
            if playwright is not None:
                await playwright.stop()
