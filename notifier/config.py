"""
Configuration for the stream status reporter.

Holds the optional backend endpoint, the worker identity tag sent with every
report and the request timeout.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

STATUS_PATH = "/api/stream-status"
DEFAULT_WORKER_ID = "github-actions"


class StreamStatus(Enum):
    """Lifecycle labels reported to the backend."""

    STREAMING = "streaming"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True)
class StatusReporterConfig:
    """Configuration for the status reporter.

    Attributes:
        endpoint: Backend base URL; reporting is disabled when unset
        worker_id: Identity tag included in every report
        timeout_seconds: Total timeout for one report request
    """

    endpoint: Optional[str] = None
    worker_id: str = DEFAULT_WORKER_ID
    timeout_seconds: float = 5.0

    @property
    def enabled(self) -> bool:
        """Check if a status endpoint is configured."""
        return bool(self.endpoint)

    @property
    def status_url(self) -> Optional[str]:
        """Full URL of the status webhook, or None when disabled."""
        if not self.endpoint:
            return None
        return f"{self.endpoint.rstrip('/')}{STATUS_PATH}"
