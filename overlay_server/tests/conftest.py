"""Pytest fixtures for the overlay server tests."""

from pathlib import Path

import aiohttp
import pytest
import pytest_asyncio

from overlay_server.server import ContentServer


@pytest.fixture
def asset_file(tmp_path: Path) -> Path:
    """Write a small overlay page."""
    asset = tmp_path / "overlay.html"
    asset.write_text("<html><body>overlay</body></html>")
    return asset


@pytest_asyncio.fixture
async def running_server(asset_file: Path):
    """Start a server on a free port and stop it afterwards."""
    server = ContentServer(port=0, asset_path=asset_file)
    await server.start()
    yield server
    await server.stop()


@pytest_asyncio.fixture
async def http_session():
    """Client session for requests against the server."""
    async with aiohttp.ClientSession() as session:
        yield session
