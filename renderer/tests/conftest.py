"""Pytest fixtures for render client tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ffmpeg_manager.config import QualityPreset, get_quality_profile


@pytest.fixture
def profile():
    """720p quality profile."""
    return get_quality_profile(QualityPreset.PRESET_720P)


@pytest.fixture
def playwright_mocks():
    """
    Mock the Playwright object graph: async_playwright() -> playwright ->
    chromium.launch() -> browser -> new_page() -> page.
    """
    page = MagicMock()
    page.goto = AsyncMock(return_value=None)
    page.set_default_navigation_timeout = MagicMock()

    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock(return_value=None)

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock(return_value=None)

    context_manager = MagicMock()
    context_manager.start = AsyncMock(return_value=playwright)
    factory = MagicMock(return_value=context_manager)

    return {"factory": factory, "playwright": playwright, "browser": browser, "page": page}
