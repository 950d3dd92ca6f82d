"""
FFmpeg process manager.

Supervises the long-lived capture/encode process: spawns it on the running
event loop, relays its meaningful output to the log, records its exit code
and asks it to stop with SIGTERM.
"""

import asyncio
import codecs
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

import psutil

from ffmpeg_manager.command_builder import REDACTED, FFmpegCommandBuilder, build_ingest_url
from ffmpeg_manager.config import FFmpegConfig
from ffmpeg_manager.log_parser import FFmpegLogParser, LineKind

logger = logging.getLogger(__name__)

# FFmpeg rewrites its progress line with carriage returns
_LINE_SPLIT = re.compile(r"[\r\n]+")
_READ_CHUNK = 4096


class ProcessState(str, Enum):
    """FFmpeg process states."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    EXITED = "exited"
    FAILED = "failed"


@dataclass
class ProcessInfo:
    """Information about a spawned FFmpeg process."""

    pid: int
    state: ProcessState
    started_at: datetime
    process: Optional[asyncio.subprocess.Process] = None
    log_parser: Optional[FFmpegLogParser] = None
    exit_code: Optional[int] = None
    tasks: List[asyncio.Task] = field(default_factory=list)


class FFmpegProcessManager:
    """
    Manages the capture/encode process lifecycle.

    Features:
    - Spawn FFmpeg without blocking the event loop
    - Relay progress and error lines to the log, never the stream key
    - Record unexpected exits without taking any recovery action
    - Graceful SIGTERM stop, safe to call more than once
    """

    def __init__(
        self,
        config: Optional[FFmpegConfig] = None,
        command_builder: Optional[FFmpegCommandBuilder] = None,
    ):
        """
        Initialize process manager.

        Args:
            config: FFmpeg configuration (creates default if not provided)
            command_builder: Command builder instance (creates default if not provided)
        """
        if config is None:
            from ffmpeg_manager.config import get_config

            config = get_config()

        self.config = config

        if command_builder is None:
            command_builder = FFmpegCommandBuilder(config)

        self.command_builder = command_builder

        self._current_process: Optional[ProcessInfo] = None
        self._secret: Optional[str] = None
        self.last_error: Optional[str] = None

        logger.info("FFmpeg Process Manager initialized")

    def _redact(self, text: str) -> str:
        if self._secret:
            return text.replace(self._secret, REDACTED)
        return text

    async def start_stream(self, ingest_base_url: str, stream_key: str) -> bool:
        """
        Start the capture/encode process.

        Launch failures are logged and reported through the return value;
        they are never raised.

        Args:
            ingest_base_url: RTMP application URL
            stream_key: Secret stream key appended to the ingest URL

        Returns:
            True if FFmpeg is running after the startup grace period
        """
        self._secret = stream_key

        try:
            ingest_url = build_ingest_url(ingest_base_url, stream_key)
            cmd = self.command_builder.build_command(ingest_url)
        except ValueError as e:
            self.last_error = str(e)
            logger.error(f"Cannot build FFmpeg command: {e}")
            return False

        profile = self.command_builder.profile
        logger.info(
            f"Starting FFmpeg stream to {ingest_base_url} "
            f"({profile.video_size}@{profile.frame_rate}fps, {profile.video_bitrate})"
        )
        logger.debug(f"Command: {self.command_builder.get_command_string(ingest_url, stream_key)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.last_error = self._redact(str(e))
            logger.error(f"Failed to start FFmpeg: {self.last_error}")
            return False

        process_info = ProcessInfo(
            pid=process.pid,
            state=ProcessState.STARTING,
            started_at=datetime.now(),
            process=process,
            log_parser=FFmpegLogParser(),
        )
        self._current_process = process_info

        process_info.tasks = [
            asyncio.create_task(self._pump_output(process.stdout, process_info)),
            asyncio.create_task(self._pump_output(process.stderr, process_info)),
            asyncio.create_task(self._watch_exit(process_info)),
        ]

        # Wait briefly to ensure process starts
        await asyncio.sleep(self.config.startup_grace)

        if process.returncode is None:
            process_info.state = ProcessState.RUNNING
            logger.info(f"FFmpeg streaming started (PID: {process.pid})")
            return True

        logger.error(f"FFmpeg process died immediately with code {process.returncode}")
        return False

    async def _pump_output(
        self,
        stream: Optional[asyncio.StreamReader],
        process_info: ProcessInfo,
    ) -> None:
        """Read a pipe until EOF and relay meaningful lines to the log."""
        if stream is None:
            return

        # Multi-byte characters may straddle two reads
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                pending += decoder.decode(b"", final=True)
                break
            pending += decoder.decode(chunk)
            *lines, pending = _LINE_SPLIT.split(pending)
            for line in lines:
                self._handle_line(line, process_info)

        if pending:
            self._handle_line(pending, process_info)

    def _handle_line(self, line: str, process_info: ProcessInfo) -> None:
        line = self._redact(line.strip())
        if not line or process_info.log_parser is None:
            return

        kind = process_info.log_parser.parse_line(line)
        if kind == LineKind.PROGRESS:
            logger.info(f"FFmpeg: {line}")
        elif kind == LineKind.ERROR:
            self.last_error = line
            logger.warning(f"FFmpeg: {line}")

    async def _watch_exit(self, process_info: ProcessInfo) -> None:
        """Record the exit code once FFmpeg terminates."""
        code = await process_info.process.wait()
        process_info.exit_code = code

        if process_info.state == ProcessState.STOPPING:
            process_info.state = ProcessState.STOPPED
            logger.info(f"FFmpeg process exited with code {code}")
        elif code == 0:
            process_info.state = ProcessState.EXITED
            logger.warning("FFmpeg process exited with code 0 before shutdown")
        else:
            process_info.state = ProcessState.FAILED
            logger.error(f"FFmpeg process exited unexpectedly with code {code}")

    async def stop_stream(self) -> bool:
        """
        Ask FFmpeg to stop with SIGTERM and wait a bounded time for it.

        The process is never force-killed. Calling this again after the
        process has exited does nothing.

        Returns:
            True if no process is left running
        """
        process_info = self._current_process
        if not process_info or not process_info.process:
            logger.info("No active stream to stop")
            return True

        process = process_info.process
        if process.returncode is not None:
            logger.debug(f"Process {process.pid} already terminated")
            await self._finish_tasks(process_info)
            return True

        process_info.state = ProcessState.STOPPING
        logger.info(f"Stopping FFmpeg stream (PID: {process.pid})")

        try:
            process.terminate()  # SIGTERM
        except ProcessLookupError:
            logger.debug(f"Process {process.pid} vanished before SIGTERM")

        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.stop_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"FFmpeg (PID: {process.pid}) still running {self.config.stop_timeout}s after SIGTERM"
            )
            await self._finish_tasks(process_info, cancel=True)
            return False

        await self._finish_tasks(process_info)
        return True

    async def _finish_tasks(self, process_info: ProcessInfo, cancel: bool = False) -> None:
        """Wait for (or cancel) the output pumps and exit watcher."""
        pending = [task for task in process_info.tasks if not task.done()]
        if cancel:
            for task in pending:
                task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def get_status(self) -> Dict:
        """
        Get current status of the FFmpeg process.

        Returns:
            Dictionary with process status information
        """
        if not self._current_process:
            return {
                "state": ProcessState.STOPPED,
                "pid": None,
                "uptime_seconds": 0,
                "exit_code": None,
                "last_error": self.last_error,
            }

        process_info = self._current_process
        uptime = (datetime.now() - process_info.started_at).total_seconds()

        status = {
            "state": process_info.state,
            "pid": process_info.pid,
            "uptime_seconds": uptime,
            "exit_code": process_info.exit_code,
            "last_error": self.last_error,
        }

        if process_info.log_parser:
            status["metrics"] = process_info.log_parser.get_metrics_summary()

        # Resource usage, informational only
        if self.is_running():
            try:
                proc = psutil.Process(process_info.pid)
                status["cpu_percent"] = proc.cpu_percent(interval=None)
                status["memory_mb"] = proc.memory_info().rss / 1024 / 1024
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass

        return status

    def is_running(self) -> bool:
        """
        Check if FFmpeg process is currently running.

        Returns:
            True if process is running
        """
        return (
            self._current_process is not None
            and self._current_process.state == ProcessState.RUNNING
        )
