"""Pytest configuration and fixtures for stream_worker tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stream_worker.config import WorkerSettings

WORKER_ENV_VARS = (
    "YOUTUBE_STREAM_KEY",
    "STREAM_URL",
    "PLAYLIST_URL",
    "OVERLAY_TITLE",
    "STREAM_DURATION_HOURS",
    "BACKEND_API_URL",
    "STREAM_QUALITY",
    "WORKER_ID",
    "WORKER_SUPERVISION_INTERVAL",
    "WORKER_NAVIGATION_TIMEOUT",
    "WORKER_SETTLE_DELAY",
    "WORKER_WARMUP_DELAY",
    "WORKER_STATUS_TIMEOUT",
    "FFMPEG_QUALITY",
    "FFMPEG_BINARY",
    "FFMPEG_STARTUP_GRACE",
    "FFMPEG_STOP_TIMEOUT",
)

STREAM_KEY = "abcd-efgh-ijkl-mnop"
SERVER_URL = "http://127.0.0.1:8080/"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the host environment and any .env file."""
    for name in WORKER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def stream_key():
    return STREAM_KEY


@pytest.fixture
def make_settings():
    """Factory for settings with fast timings."""

    def _make(**overrides):
        values = {
            "stream_key": STREAM_KEY,
            "ingest_base_url": "rtmp://ingest.test/live2",
            "overlay_title": "Test Radio",
            "duration_hours": 0.0001,  # 0.36 seconds
            "supervision_interval": 300.0,
            "settle_delay": 0.0,
            "warmup_delay": 0.0,
            "status_timeout": 1.0,
        }
        values.update(overrides)
        return WorkerSettings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def events():
    """Ordered record of component calls."""
    return []


@pytest.fixture
def reporter(events):
    """Status reporter mock that records reported labels."""
    mock = MagicMock()

    async def _report(status):
        events.append(f"report:{status.value}")
        return True

    mock.report = AsyncMock(side_effect=_report)
    return mock


@pytest.fixture
def components(events):
    """
    Patch the server, browser and capture process used by the orchestrator.

    Yields a dict of the class mocks and the instances they return.
    """
    server = MagicMock()
    server.url = SERVER_URL
    server.start = AsyncMock(side_effect=lambda: events.append("server.start"))
    server.stop = AsyncMock(side_effect=lambda: events.append("server.stop"))

    renderer = MagicMock()
    renderer.start = AsyncMock(side_effect=lambda url: events.append("renderer.start"))
    renderer.close = AsyncMock(side_effect=lambda: events.append("renderer.close"))

    encoder = MagicMock()

    def _start_stream(ingest_base_url, stream_key):
        events.append("encoder.start")
        return True

    def _stop_stream():
        events.append("encoder.stop")
        return True

    encoder.start_stream = AsyncMock(side_effect=_start_stream)
    encoder.stop_stream = AsyncMock(side_effect=_stop_stream)
    encoder.get_status = MagicMock(return_value={"exit_code": -15})

    server_cls = MagicMock(return_value=server)
    renderer_cls = MagicMock(return_value=renderer)
    encoder_cls = MagicMock(return_value=encoder)

    with patch("stream_worker.orchestrator.ContentServer", server_cls), patch(
        "stream_worker.orchestrator.RenderClient", renderer_cls
    ), patch("stream_worker.orchestrator.FFmpegProcessManager", encoder_cls):
        yield {
            "server": server,
            "renderer": renderer,
            "encoder": encoder,
            "server_cls": server_cls,
            "renderer_cls": renderer_cls,
            "encoder_cls": encoder_cls,
        }
