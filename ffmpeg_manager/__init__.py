"""
FFmpeg Capture/Encode Manager

Builds and supervises the FFmpeg process that captures the virtual display
and audio sink and pushes an FLV stream to the RTMP ingest endpoint.

Version: 1.0.0
"""

__version__ = "1.0.0"

from ffmpeg_manager.command_builder import FFmpegCommandBuilder, build_ingest_url
from ffmpeg_manager.config import (
    FFmpegConfig,
    QualityPreset,
    QualityProfile,
    get_quality_profile,
)
from ffmpeg_manager.log_parser import FFmpegLogParser
from ffmpeg_manager.process_manager import FFmpegProcessManager, ProcessState

__all__ = [
    "FFmpegCommandBuilder",
    "FFmpegConfig",
    "FFmpegLogParser",
    "FFmpegProcessManager",
    "ProcessState",
    "QualityPreset",
    "QualityProfile",
    "build_ingest_url",
    "get_quality_profile",
]
