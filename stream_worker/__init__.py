"""
Stream Worker

Runs one bounded live stream: serves the overlay page, renders it in a
visible browser on the virtual display, captures display and audio with
FFmpeg and pushes the result to the RTMP ingest endpoint until the
configured duration ends or the process is told to stop.

Version: 1.0.0
"""

__version__ = "1.0.0"

from stream_worker.config import WorkerSettings, load_ffmpeg_config, load_settings
from stream_worker.errors import (
    ConfigurationError,
    LifecycleError,
    StartupError,
    StreamWorkerError,
)
from stream_worker.lifecycle import Deadline, Lifecycle, LifecycleState
from stream_worker.orchestrator import StreamOrchestrator

__all__ = [
    "ConfigurationError",
    "Deadline",
    "Lifecycle",
    "LifecycleError",
    "LifecycleState",
    "StartupError",
    "StreamOrchestrator",
    "StreamWorkerError",
    "WorkerSettings",
    "load_ffmpeg_config",
    "load_settings",
]
