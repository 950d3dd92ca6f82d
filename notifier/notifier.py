"""
Stream status reporter.

Posts lifecycle status to an optional backend. Reporting is best-effort:
every failure is logged as a warning and swallowed so it can never affect
the stream itself.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp

from notifier.config import StatusReporterConfig, StreamStatus

logger = logging.getLogger(__name__)


class StatusReporter:
    """Best-effort reporter of worker lifecycle status."""

    def __init__(self, config: Optional[StatusReporterConfig] = None):
        """
        Initialize the reporter.

        Args:
            config: Optional configuration. Reporting is disabled without one.
        """
        self.config = config or StatusReporterConfig()

        # Statistics
        self.stats = {
            "sent": 0,
            "failed": 0,
            "skipped": 0,
        }

    def build_payload(self, status: StreamStatus) -> Dict[str, Any]:
        """Build the JSON body for a status report."""
        return {
            "status": status.value,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "worker": self.config.worker_id,
        }

    async def report(self, status: StreamStatus) -> bool:
        """
        Report a status to the backend.

        Args:
            status: Lifecycle status label

        Returns:
            True if the backend accepted the report. Never raises.
        """
        if not self.config.enabled:
            logger.debug(f"No status endpoint configured, skipping report: {status.value}")
            self.stats["skipped"] += 1
            return False

        payload = self.build_payload(status)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.config.status_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
                ) as response:
                    if 200 <= response.status < 300:
                        logger.info(f"Status reported: {status.value}")
                        self.stats["sent"] += 1
                        return True

                    logger.warning(
                        f"Could not report status {status.value}: HTTP {response.status}"
                    )

        except asyncio.TimeoutError:
            logger.warning(f"Could not report status {status.value}: request timed out")
        except aiohttp.ClientError as e:
            logger.warning(f"Could not report status {status.value}: {e}")
        except Exception as e:
            logger.warning(f"Unexpected error reporting status {status.value}: {e}")

        self.stats["failed"] += 1
        return False

