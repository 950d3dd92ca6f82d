"""
FFmpeg command builder.

Constructs the capture-and-encode command: X11 display and PulseAudio in,
x264/AAC encoded FLV out to the RTMP ingest endpoint.
"""

import logging
from typing import List, Optional

from ffmpeg_manager.config import AUDIO_SOURCE, CAPTURE_DISPLAY, FFmpegConfig

logger = logging.getLogger(__name__)

REDACTED = "***"


def build_ingest_url(ingest_base_url: str, stream_key: str) -> str:
    """
    Join the ingest base URL and the stream key.

    Args:
        ingest_base_url: RTMP application URL, e.g. rtmp://a.rtmp.youtube.com/live2
        stream_key: Secret stream key

    Returns:
        Full ingest URL

    Raises:
        ValueError: If either part is empty
    """
    if not ingest_base_url or not ingest_base_url.strip():
        raise ValueError("ingest_base_url cannot be empty")
    if not stream_key:
        raise ValueError("stream_key cannot be empty")
    return f"{ingest_base_url.rstrip('/')}/{stream_key}"


class FFmpegCommandBuilder:
    """
    Builds the FFmpeg command that captures the virtual display and audio sink.

    The argument set is fixed; only the quality profile and the ingest URL vary.
    """

    def __init__(self, config: FFmpegConfig):
        """
        Initialize command builder.

        Args:
            config: FFmpeg configuration
        """
        self.config = config
        self.profile = config.get_quality_profile()

    def build_command(self, ingest_url: str) -> List[str]:
        """
        Build complete FFmpeg command for streaming.

        Args:
            ingest_url: Full RTMP URL including the stream key

        Returns:
            List of command arguments for subprocess

        Raises:
            ValueError: If ingest_url is empty
        """
        if not ingest_url or not ingest_url.strip():
            raise ValueError("ingest_url cannot be empty")

        cmd = [self.config.ffmpeg_binary]

        # Video input (virtual display)
        cmd.extend(self._build_video_input())

        # Audio input (default sink)
        cmd.extend(self._build_audio_input())

        # Video encoding
        cmd.extend(self._build_video_encoding())

        # Audio encoding
        cmd.extend(self._build_audio_encoding())

        # Output options
        cmd.extend(self._build_output_options(ingest_url))

        return cmd

    def _build_video_input(self) -> List[str]:
        """Build X11 capture input options."""
        return [
            "-f", "x11grab",
            "-video_size", self.profile.video_size,
            "-framerate", str(self.profile.frame_rate),
            "-i", CAPTURE_DISPLAY,
        ]

    def _build_audio_input(self) -> List[str]:
        """Build PulseAudio capture input options."""
        return [
            "-f", "pulse",
            "-i", AUDIO_SOURCE,
        ]

    def _build_video_encoding(self) -> List[str]:
        """Build x264 options tuned for real-time encoding on few cores."""
        profile = self.profile
        return [
            "-c:v", "libx264",
            "-preset", "ultrafast",
            "-tune", "zerolatency",  # Optimize for low latency
            "-b:v", profile.video_bitrate,
            "-maxrate", profile.max_bitrate,
            "-bufsize", profile.buffer_size,
            "-pix_fmt", "yuv420p",
            "-g", str(profile.keyframe_interval),
            "-threads", "2",
        ]

    def _build_audio_encoding(self) -> List[str]:
        """Build AAC audio options."""
        return [
            "-c:a", "aac",
            "-b:a", "128k",
            "-ar", "44100",
            "-ac", "2",
        ]

    def _build_output_options(self, ingest_url: str) -> List[str]:
        """Build output format options."""
        return [
            "-f", "flv",  # Flash Video format for RTMP
            ingest_url,
        ]

    def get_command_string(self, ingest_url: str, secret: Optional[str] = None) -> str:
        """
        Get FFmpeg command as a single string (useful for logging).

        Args:
            ingest_url: Full RTMP URL including the stream key
            secret: Value to mask in the output, normally the stream key

        Returns:
            Space-separated command string with the secret masked
        """
        command = " ".join(self.build_command(ingest_url))
        if secret:
            command = command.replace(secret, REDACTED)
        return command
