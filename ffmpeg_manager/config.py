"""
FFmpeg configuration and quality profiles.

A quality profile bundles the geometry and bitrate settings that the render
surface and the capture/encode process must agree on. One profile is chosen
at configuration time and handed to both sides.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

# Fixed capture sources: Xvfb display and the PulseAudio default sink monitor
CAPTURE_DISPLAY = ":99"
AUDIO_SOURCE = "default"


class QualityPreset(str, Enum):
    """Available quality presets."""

    PRESET_720P = "720p"
    PRESET_1080P = "1080p"


@dataclass(frozen=True)
class QualityProfile:
    """Resolution, frame rate and bitrate settings for one quality level."""

    name: str
    width: int
    height: int
    frame_rate: int
    video_bitrate: str  # e.g., "2000k"
    max_bitrate: str  # rate control ceiling
    buffer_size: str  # VBV buffer
    keyframe_interval: int  # GOP size, two seconds of frames

    @property
    def video_size(self) -> str:
        """Capture size in FFmpeg notation, e.g. ``1280x720``."""
        return f"{self.width}x{self.height}"

    @property
    def window_size(self) -> str:
        """Browser window size in Chromium flag notation, e.g. ``1280,720``."""
        return f"{self.width},{self.height}"


QUALITY_PROFILES: Dict[QualityPreset, QualityProfile] = {
    # Tuned for shared CI runners (two cores, no GPU)
    QualityPreset.PRESET_720P: QualityProfile(
        name="720p24 (x264 ultrafast)",
        width=1280,
        height=720,
        frame_rate=24,
        video_bitrate="2000k",
        max_bitrate="2500k",
        buffer_size="4000k",
        keyframe_interval=48,
    ),
    QualityPreset.PRESET_1080P: QualityProfile(
        name="1080p30 (x264 ultrafast)",
        width=1920,
        height=1080,
        frame_rate=30,
        video_bitrate="4500k",
        max_bitrate="5000k",
        buffer_size="9000k",
        keyframe_interval=60,
    ),
}


class FFmpegConfig(BaseSettings):
    """FFmpeg process configuration from environment variables."""

    ffmpeg_binary: str = Field(
        default="ffmpeg",
        description="Path to FFmpeg binary",
    )

    quality: QualityPreset = Field(
        default=QualityPreset.PRESET_720P,
        description="Quality profile shared with the render surface",
    )

    startup_grace: float = Field(
        default=0.5,
        description="Seconds to wait before checking that FFmpeg survived launch",
        ge=0.0,
        le=10.0,
    )

    stop_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for FFmpeg to exit after SIGTERM",
        ge=0.0,
        le=120.0,
    )

    model_config = ConfigDict(
        env_prefix="FFMPEG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields from environment
    )

    def get_quality_profile(self) -> QualityProfile:
        """Get the quality profile for the selected preset."""
        return QUALITY_PROFILES[self.quality]


def get_config() -> FFmpegConfig:
    """
    Get FFmpeg configuration from environment variables.

    Returns:
        FFmpegConfig: Configuration instance
    """
    return FFmpegConfig()


def get_quality_profile(preset: QualityPreset) -> QualityProfile:
    """
    Get the quality profile for a specific preset.

    Args:
        preset: Quality preset

    Returns:
        QualityProfile: Profile configuration

    Raises:
        KeyError: If preset is not found
    """
    if preset not in QUALITY_PROFILES:
        raise KeyError(f"Unknown quality preset: {preset}")
    return QUALITY_PROFILES[preset]
