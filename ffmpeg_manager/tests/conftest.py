"""
Pytest configuration and fixtures for FFmpeg manager tests.
"""

import sys
from typing import Callable, List
from unittest.mock import MagicMock

import pytest

from ffmpeg_manager.command_builder import FFmpegCommandBuilder
from ffmpeg_manager.config import FFmpegConfig, QualityPreset
from ffmpeg_manager.log_parser import FFmpegLogParser
from ffmpeg_manager.process_manager import FFmpegProcessManager


@pytest.fixture
def test_config() -> FFmpegConfig:
    """Create a test configuration."""
    return FFmpegConfig(
        ffmpeg_binary="ffmpeg",
        quality=QualityPreset.PRESET_720P,
        startup_grace=0.0,
        stop_timeout=5.0,
    )


@pytest.fixture
def command_builder(test_config: FFmpegConfig) -> FFmpegCommandBuilder:
    """Create a command builder for testing."""
    return FFmpegCommandBuilder(test_config)


@pytest.fixture
def log_parser() -> FFmpegLogParser:
    """Create a log parser for testing."""
    return FFmpegLogParser()


@pytest.fixture
def process_manager(test_config: FFmpegConfig) -> FFmpegProcessManager:
    """Create a process manager for testing."""
    return FFmpegProcessManager(config=test_config)


@pytest.fixture
def fake_ffmpeg(test_config: FFmpegConfig) -> Callable[[str], FFmpegProcessManager]:
    """
    Build a process manager whose "FFmpeg" is a Python child process.

    The child runs the given script instead of the real encoder, so the
    manager's spawn, output relay and stop paths run for real.
    """

    def _make(script: str) -> FFmpegProcessManager:
        builder = MagicMock(spec=FFmpegCommandBuilder)
        builder.profile = test_config.get_quality_profile()

        def build_command(ingest_url: str) -> List[str]:
            return [sys.executable, "-c", script, ingest_url]

        builder.build_command.side_effect = build_command
        builder.get_command_string.return_value = "python -c <script>"
        return FFmpegProcessManager(config=test_config, command_builder=builder)

    return _make


@pytest.fixture
def sample_ffmpeg_output() -> str:
    """Sample FFmpeg stderr output, progress lines rewritten with carriage returns."""
    return (
        "Input #0, x11grab, from ':99':\n"
        "  Duration: N/A, start: 1700000000.000000, bitrate: N/A\n"
        "frame=   24 fps= 24 q=23.0 size=     256kB time=00:00:01.00 bitrate=2000.0kbits/s speed=1.00x\r"
        "frame=   48 fps= 24 q=23.0 size=     512kB time=00:00:02.00 bitrate=2000.0kbits/s dup=1 drop=2 speed=1.00x\r"
        "[flv @ 0x55d] Failed to update header with correct duration.\n"
        "[rtmp @ 0x55d] RTMP send error 32 (Broken pipe)\n"
    )


@pytest.fixture
def ingest_base() -> str:
    """RTMP application URL used by tests."""
    return "rtmp://ingest.test/live2"


@pytest.fixture
def stream_key() -> str:
    """Secret stream key used by tests."""
    return "abcd-efgh-ijkl-mnop"
