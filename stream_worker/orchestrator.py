"""
Lifecycle orchestrator.

Starts the overlay server, the browser and the capture process in order,
keeps the stream alive until the deadline or a termination signal, then
tears everything down exactly once and reports the final status.
"""

import asyncio
import logging
import signal
from typing import Optional

from ffmpeg_manager import FFmpegConfig, FFmpegProcessManager, get_quality_profile
from notifier import StatusReporter, StatusReporterConfig, StreamStatus
from overlay_server import ContentServer, ContentServerError
from renderer import RenderClient, RenderError, build_overlay_url
from stream_worker.config import WorkerSettings
from stream_worker.errors import StartupError
from stream_worker.lifecycle import Deadline, Lifecycle, LifecycleState

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class StreamOrchestrator:
    """
    Coordinates the stream worker's components for one bounded run.

    Component handles stay ``None`` until the component is created, so
    shutdown only touches what was actually started.
    """

    def __init__(
        self,
        settings: WorkerSettings,
        ffmpeg_config: Optional[FFmpegConfig] = None,
        reporter: Optional[StatusReporter] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Resolved worker settings
            ffmpeg_config: Capture process configuration (read from the
                environment with the settings' quality if not provided)
            reporter: Status reporter (built from settings if not provided)
        """
        self.settings = settings
        self.ffmpeg_config = ffmpeg_config or FFmpegConfig(quality=settings.quality)
        self.profile = get_quality_profile(settings.quality)
        self.reporter = reporter or StatusReporter(
            StatusReporterConfig(
                endpoint=settings.status_endpoint,
                worker_id=settings.worker_id,
                timeout_seconds=settings.status_timeout,
            )
        )

        self.lifecycle = Lifecycle()
        self.deadline: Optional[Deadline] = None

        self.server: Optional[ContentServer] = None
        self.renderer: Optional[RenderClient] = None
        self.encoder: Optional[FFmpegProcessManager] = None

        self._stop_requested = asyncio.Event()
        self._stop_cause: Optional[str] = None
        self._fatal_error: Optional[BaseException] = None
        self._shutdown_started = False
        self._signals_installed = False

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    def request_stop(self, cause: str = "stop requested") -> None:
        """Ask the worker to shut down. Only the first cause is kept."""
        if self._stop_cause is None:
            self._stop_cause = cause
            logger.info(f"Termination requested: {cause}")
        self._stop_requested.set()

    async def run(self) -> int:
        """
        Run the worker until the deadline, a signal or a fatal startup error.

        Returns:
            Process exit code (always 0 once shutdown has completed)
        """
        self._install_signal_handlers()
        try:
            try:
                await self._startup()
            except StartupError as e:
                logger.error(f"Startup failed: {e}")
                self._fail(e)
            except Exception as e:
                logger.error(f"Unexpected error during startup: {e}", exc_info=True)
                self._fail(e)
            else:
                if self.lifecycle.state == LifecycleState.STREAMING:
                    await self._supervise()
        finally:
            await self.shutdown()
            self._remove_signal_handlers()

        return 0

    def _fail(self, error: Exception) -> None:
        self._fatal_error = error
        self.lifecycle.transition(LifecycleState.ERRORED)
        self.request_stop("fatal error")

    def _stop_pending(self, step: str) -> bool:
        if self._stop_requested.is_set():
            logger.info(f"Skipping remaining startup after {step}")
            return True
        return False

    async def _startup(self) -> None:
        """Start every component in order; a stop request skips the rest."""
        settings = self.settings

        logger.info("Starting overlay server...")
        self.server = ContentServer()
        try:
            await self.server.start()
        except ContentServerError as e:
            raise StartupError(str(e)) from e
        if self._stop_pending("overlay server"):
            return

        overlay_url = build_overlay_url(
            self.server.url, settings.overlay_title, settings.playlist_url
        )
        # Assigned before start so shutdown closes a half-launched browser
        self.renderer = RenderClient(
            self.profile,
            navigation_timeout=settings.navigation_timeout,
            settle_delay=settings.settle_delay,
        )
        try:
            await self.renderer.start(overlay_url)
        except RenderError as e:
            raise StartupError(str(e)) from e
        if self._stop_pending("browser"):
            return

        logger.info(f"Waiting {settings.warmup_delay:g}s before starting capture...")
        await asyncio.sleep(settings.warmup_delay)
        if self._stop_pending("warm-up"):
            return

        self.encoder = FFmpegProcessManager(self.ffmpeg_config)
        started = await self.encoder.start_stream(
            settings.ingest_base_url,
            settings.stream_key.get_secret_value(),
        )
        if not started:
            logger.error("Capture process is not running; streaming continues until the deadline")
        if self._stop_pending("capture process"):
            return

        await self.reporter.report(StreamStatus.STREAMING)

        self.deadline = Deadline.after(settings.duration_seconds)
        self.lifecycle.transition(LifecycleState.STREAMING)
        logger.info("Stream is live")
        logger.info(f"Will run until {self.deadline.wall_clock.isoformat()}")

    async def _supervise(self) -> None:
        """Wait for the deadline, waking early on a stop request."""
        interval = self.settings.supervision_interval

        while not self._stop_requested.is_set():
            remaining = self.deadline.remaining()
            if remaining <= 0:
                self.request_stop("duration reached")
                break

            logger.info(f"Streaming... {round(remaining / 60)} minutes remaining")
            self._log_encoder_status()
            try:
                await asyncio.wait_for(
                    self._stop_requested.wait(), timeout=min(interval, remaining)
                )
            except asyncio.TimeoutError:
                pass

    def _log_encoder_status(self) -> None:
        """Log the capture process state and resource usage. Informational only."""
        if self.encoder is None:
            return

        status = self.encoder.get_status()
        state = status.get("state")
        parts = [f"state={getattr(state, 'value', state)}"]

        metrics = status.get("metrics")
        if metrics:
            parts.append(f"fps={metrics['fps']}")
            parts.append(f"bitrate={metrics['bitrate']}")
            parts.append(f"speed={metrics['speed']}x")
        if "cpu_percent" in status:
            parts.append(f"cpu={status['cpu_percent']:.1f}%")
            parts.append(f"memory={status['memory_mb']:.1f}MB")
        if status.get("exit_code") is not None:
            parts.append(f"exit_code={status['exit_code']}")

        logger.info(f"Capture process: {', '.join(parts)}")

    async def shutdown(self) -> None:
        """
        Stop every started component and report the final status.

        Runs at most once; later calls return immediately. Each step is
        guarded so a failing step never prevents the next one.
        """
        if self._shutdown_started:
            logger.debug("Shutdown already in progress")
            return
        self._shutdown_started = True

        self.lifecycle.transition(LifecycleState.STOPPING)
        logger.info(f"Shutting down ({self._stop_cause or 'run finished'})...")

        if self.encoder is not None:
            try:
                if not await self.encoder.stop_stream():
                    logger.warning("Capture process did not exit after SIGTERM")
                exit_code = self.encoder.get_status().get("exit_code")
                if exit_code is not None:
                    logger.info(f"Capture process exit code: {exit_code}")
            except Exception as e:
                logger.error(f"Error stopping capture process: {e}", exc_info=True)

        if self.renderer is not None:
            try:
                await self.renderer.close()
            except Exception as e:
                logger.error(f"Error closing browser: {e}", exc_info=True)

        if self.server is not None:
            try:
                await self.server.stop()
            except Exception as e:
                logger.error(f"Error stopping overlay server: {e}", exc_info=True)

        final_status = StreamStatus.ERROR if self._fatal_error else StreamStatus.STOPPED
        await self.reporter.report(final_status)

        self.lifecycle.transition(LifecycleState.STOPPED)
        logger.info("Stream worker stopped")

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in TERMINATION_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_stop, f"received {sig.name}")
            except (NotImplementedError, RuntimeError):
                logger.warning(f"Cannot install handler for {sig.name}")
                continue
            self._signals_installed = True

    def _remove_signal_handlers(self) -> None:
        if not self._signals_installed:
            return
        loop = asyncio.get_running_loop()
        for sig in TERMINATION_SIGNALS:
            loop.remove_signal_handler(sig)
        self._signals_installed = False
