"""
Status reporting for the stream worker.

Sends best-effort lifecycle updates (streaming, stopped, error) to an
optional backend endpoint.

Main components:
- StatusReporter: Posts status reports, never raises
- StatusReporterConfig: Endpoint, worker identity and timeout
- StreamStatus: Status labels

Example:
    from notifier import StatusReporter, StatusReporterConfig, StreamStatus

    reporter = StatusReporter(StatusReporterConfig(endpoint="https://backend.example"))
    await reporter.report(StreamStatus.STREAMING)
"""

from .config import StatusReporterConfig, StreamStatus
from .notifier import StatusReporter

__version__ = "1.0.0"
__all__ = ["StatusReporter", "StatusReporterConfig", "StreamStatus"]
