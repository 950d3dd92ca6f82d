"""
FFmpeg log parser.

Classifies FFmpeg output lines so only operationally meaningful ones
(progress and error lines) reach the worker log, and keeps the latest
encoding metrics for status reporting.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class LineKind(str, Enum):
    """Classification of a single FFmpeg output line."""

    PROGRESS = "progress"
    ERROR = "error"
    NOISE = "noise"


class ErrorType(str, Enum):
    """Types of FFmpeg errors."""

    CONNECTION_FAILED = "connection_failed"
    RTMP_ERROR = "rtmp_error"
    CAPTURE_ERROR = "capture_error"
    ENCODER_ERROR = "encoder_error"
    IO_ERROR = "io_error"
    UNKNOWN = "unknown"


@dataclass
class FFmpegMetrics:
    """Metrics extracted from FFmpeg progress lines."""

    frame_count: int = 0
    fps: float = 0.0
    bitrate: str = "0kbits/s"
    speed: float = 0.0
    time: str = "00:00:00.00"
    dup_frames: int = 0
    drop_frames: int = 0
    last_update: Optional[datetime] = None


@dataclass
class FFmpegError:
    """Represents an FFmpeg error line."""

    timestamp: datetime
    error_type: ErrorType
    message: str


class FFmpegLogParser:
    """
    Parses FFmpeg output to extract metrics and pick out error lines.

    A line is meaningful when it carries a ``frame=`` progress marker or
    mentions an error; everything else (banner, stream mapping, codec info)
    is noise.
    """

    ERROR_PATTERNS = {
        ErrorType.CONNECTION_FAILED: [
            r"Connection (?:refused|timed out|reset)",
            r"Failed to connect",
            r"Could not (?:open|connect)",
        ],
        ErrorType.RTMP_ERROR: [
            r"RTMP.*error",
            r"RTMP.*connection.*closed",
            r"Broken pipe",
        ],
        ErrorType.CAPTURE_ERROR: [
            r"Cannot open display",
            r"x11grab",
            r"pulse",
        ],
        ErrorType.ENCODER_ERROR: [
            r"Error (?:encoding|while encoding)",
            r"Encoder.*error",
            r"Unknown encoder",
        ],
        ErrorType.IO_ERROR: [
            r"I/O error",
            r"Input/output error",
        ],
    }

    METRICS_PATTERN = re.compile(
        r"frame=\s*(\d+)\s+"
        r"fps=\s*([\d.]+)\s+"
        r".*?size=.*?"
        r"time=\s*([\d:.]+)\s+"
        r"bitrate=\s*([\d.]+\w+/s)\s+"
        r"(?:dup=\s*(\d+)\s+)?"
        r"(?:drop=\s*(\d+)\s+)?"
        r"speed=\s*([\d.]+)x"
    )

    PROGRESS_MARKER = "frame="
    ERROR_MARKER = re.compile(r"error", re.IGNORECASE)

    def __init__(self, max_errors: int = 100):
        """
        Initialize log parser.

        Args:
            max_errors: Number of recent errors to keep
        """
        self._compiled = {
            error_type: [re.compile(p, re.IGNORECASE) for p in patterns]
            for error_type, patterns in self.ERROR_PATTERNS.items()
        }
        self.max_errors = max_errors
        self.metrics = FFmpegMetrics()
        self.errors: List[FFmpegError] = []
        self.lines_seen = 0

    def classify(self, line: str) -> LineKind:
        """Classify a line without changing parser state."""
        if self.PROGRESS_MARKER in line:
            return LineKind.PROGRESS
        if self.ERROR_MARKER.search(line):
            return LineKind.ERROR
        return LineKind.NOISE

    def parse_line(self, line: str) -> LineKind:
        """
        Parse a single line of FFmpeg output.

        Args:
            line: Line of FFmpeg output

        Returns:
            The line's classification
        """
        line = line.strip()
        if not line:
            return LineKind.NOISE

        self.lines_seen += 1
        kind = self.classify(line)

        if kind == LineKind.PROGRESS:
            self._update_metrics(line)
        elif kind == LineKind.ERROR:
            self._record_error(line)

        return kind

    def _update_metrics(self, line: str) -> None:
        """Extract metrics from FFmpeg progress output."""
        match = self.METRICS_PATTERN.search(line)
        if not match:
            return
        try:
            self.metrics.frame_count = int(match.group(1))
            self.metrics.fps = float(match.group(2))
            self.metrics.time = match.group(3)
            self.metrics.bitrate = match.group(4)

            # Optional dup/drop frames
            if match.group(5):
                self.metrics.dup_frames = int(match.group(5))
            if match.group(6):
                self.metrics.drop_frames = int(match.group(6))

            self.metrics.speed = float(match.group(7))
            self.metrics.last_update = datetime.now()
        except (ValueError, IndexError) as e:
            logger.debug(f"Failed to parse metrics from line: {e}")

    def _record_error(self, line: str) -> None:
        error_type = ErrorType.UNKNOWN
        for candidate, patterns in self._compiled.items():
            if any(pattern.search(line) for pattern in patterns):
                error_type = candidate
                break

        self.errors.append(
            FFmpegError(
                timestamp=datetime.now(),
                error_type=error_type,
                message=self._extract_error_message(line),
            )
        )
        if len(self.errors) > self.max_errors:
            self.errors = self.errors[-self.max_errors:]

    def _extract_error_message(self, line: str) -> str:
        """Strip FFmpeg context prefixes and truncate long lines."""
        message = re.sub(r"^\[[^\]]+\]\s*", "", line)

        if len(message) > 200:
            message = message[:197] + "..."

        return message.strip()

    def get_recent_errors(self, count: int = 10) -> List[FFmpegError]:
        """
        Get most recent errors.

        Args:
            count: Number of errors to return

        Returns:
            List of recent errors
        """
        return self.errors[-count:]

    def get_metrics_summary(self) -> Dict:
        """
        Get summary of current metrics.

        Returns:
            Dictionary with metric values
        """
        return {
            "frame_count": self.metrics.frame_count,
            "fps": self.metrics.fps,
            "bitrate": self.metrics.bitrate,
            "speed": self.metrics.speed,
            "time": self.metrics.time,
            "dup_frames": self.metrics.dup_frames,
            "drop_frames": self.metrics.drop_frames,
            "last_update": (
                self.metrics.last_update.isoformat() if self.metrics.last_update else None
            ),
            "total_errors": len(self.errors),
        }
