"""
Stream worker entry point.

Usage:
    python -m stream_worker
    python -m stream_worker --check-config
    stream-worker --log-level DEBUG
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from logging_module import LoggingConfig, setup_logging
from stream_worker.config import load_ffmpeg_config, load_settings
from stream_worker.errors import ConfigurationError
from stream_worker.orchestrator import StreamOrchestrator

logger = logging.getLogger("stream_worker")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stream-worker",
        description="Stream a rendered overlay page to an RTMP ingest endpoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  YOUTUBE_STREAM_KEY      Stream key (required)
  STREAM_URL              RTMP ingest URL (default: rtmp://a.rtmp.youtube.com/live2)
  PLAYLIST_URL            Playlist passed to the overlay page
  OVERLAY_TITLE           Overlay title (default: YouTube Radio 24/7)
  STREAM_DURATION_HOURS   Stream duration in hours (default: 5.5)
  BACKEND_API_URL         Backend for status reports (optional)
  STREAM_QUALITY          720p or 1080p (default: 720p)
        """,
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        default=None,
        help="Override LOG_LEVEL",
    )

    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate configuration, print it with secrets masked, and exit",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the stream worker."""
    args = parse_args(argv)

    logging_config = LoggingConfig.from_env()
    if args.log_level:
        logging_config.log_level = args.log_level

    try:
        redactor = setup_logging(logging_config)
    except ValueError as e:
        print(f"Invalid logging configuration: {e}", file=sys.stderr)
        return 1

    try:
        settings = load_settings()
        ffmpeg_config = load_ffmpeg_config(settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    redactor.add_secret(settings.stream_key.get_secret_value())

    if args.check_config:
        description = settings.describe()
        description["ffmpeg"] = ffmpeg_config.model_dump(mode="json")
        print(json.dumps(description, indent=2))
        return 0

    logger.info("Starting stream worker")
    logger.info(f"Target: {settings.ingest_base_url}")
    logger.info(f"Duration: {settings.duration_hours:g} hours")
    logger.info(f"Overlay: {settings.overlay_title}")
    logger.info(f"Quality: {settings.quality.value}")

    return asyncio.run(StreamOrchestrator(settings, ffmpeg_config).run())


if __name__ == "__main__":
    sys.exit(main())
