"""Pytest fixtures for the status reporter tests."""

from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer


@pytest.fixture
def mock_session_factory():
    """Build a mocked aiohttp.ClientSession whose post() yields a response."""

    def _make(status: int = 200, post_side_effect=None):
        mock_response = MagicMock()
        mock_response.status = status
        mock_response.__aenter__ = AsyncMock(return_value=mock_response)
        mock_response.__aexit__ = AsyncMock(return_value=None)
        if post_side_effect is not None:
            mock_response.__aenter__ = AsyncMock(side_effect=post_side_effect)

        mock_session = MagicMock()
        mock_session.post = MagicMock(return_value=mock_response)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)
        return mock_session

    return _make


@pytest_asyncio.fixture
async def backend():
    """Run a throwaway backend that records status reports."""
    received: List[dict] = []

    async def handle_status(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.json_response({"ok": True})

    app = web.Application()
    app.router.add_post("/api/stream-status", handle_status)

    server = TestServer(app)
    await server.start_server()
    server.received = received
    yield server
    await server.close()
