"""
Stream worker configuration.

All settings are resolved from the environment once at startup into an
immutable snapshot. The stream key is held as a secret and never appears in
``repr()`` or in the redacted description used for logging.
"""

from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings

from ffmpeg_manager.command_builder import REDACTED
from ffmpeg_manager.config import FFmpegConfig, QualityPreset
from notifier.config import DEFAULT_WORKER_ID
from stream_worker.errors import ConfigurationError

DEFAULT_INGEST_URL = "rtmp://a.rtmp.youtube.com/live2"
DEFAULT_OVERLAY_TITLE = "YouTube Radio 24/7"
DEFAULT_DURATION_HOURS = 5.5


class WorkerSettings(BaseSettings):
    """Stream worker settings from environment variables."""

    stream_key: SecretStr = Field(
        validation_alias="YOUTUBE_STREAM_KEY",
        description="Secret key appended to the ingest URL",
    )

    ingest_base_url: str = Field(
        default=DEFAULT_INGEST_URL,
        validation_alias="STREAM_URL",
        description="RTMP ingest application URL",
    )

    playlist_url: Optional[str] = Field(
        default=None,
        validation_alias="PLAYLIST_URL",
        description="Playlist passed through to the overlay page",
    )

    overlay_title: str = Field(
        default=DEFAULT_OVERLAY_TITLE,
        validation_alias="OVERLAY_TITLE",
        description="Title shown by the overlay page",
    )

    duration_hours: float = Field(
        default=DEFAULT_DURATION_HOURS,
        validation_alias="STREAM_DURATION_HOURS",
        description="How long to stream before shutting down",
        gt=0.0,
    )

    status_endpoint: Optional[str] = Field(
        default=None,
        validation_alias="BACKEND_API_URL",
        description="Backend base URL for status reports",
    )

    quality: QualityPreset = Field(
        default=QualityPreset.PRESET_720P,
        validation_alias="STREAM_QUALITY",
        description="Quality profile for both the browser window and the capture",
    )

    worker_id: str = Field(
        default=DEFAULT_WORKER_ID,
        validation_alias="WORKER_ID",
        description="Identity tag sent with status reports",
    )

    # Timing (seconds)
    supervision_interval: float = Field(default=300.0, gt=0.0)
    navigation_timeout: float = Field(default=60.0, gt=0.0)
    settle_delay: float = Field(default=2.0, ge=0.0)
    warmup_delay: float = Field(default=3.0, ge=0.0)
    status_timeout: float = Field(default=5.0, gt=0.0)

    model_config = ConfigDict(
        env_prefix="WORKER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields from environment
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("stream_key")
    @classmethod
    def _stream_key_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("ingest_base_url")
    @classmethod
    def _ingest_url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("playlist_url", "status_endpoint")
    @classmethod
    def _blank_as_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def duration_seconds(self) -> float:
        return self.duration_hours * 3600

    def describe(self) -> Dict[str, Any]:
        """
        Describe the settings for logging.

        Returns:
            Dictionary of settings with the stream key masked
        """
        return {
            "stream_key": REDACTED,
            "ingest_base_url": self.ingest_base_url,
            "playlist_url": self.playlist_url,
            "overlay_title": self.overlay_title,
            "duration_hours": self.duration_hours,
            "status_endpoint": self.status_endpoint,
            "quality": self.quality.value,
            "worker_id": self.worker_id,
            "supervision_interval": self.supervision_interval,
            "navigation_timeout": self.navigation_timeout,
            "settle_delay": self.settle_delay,
            "warmup_delay": self.warmup_delay,
            "status_timeout": self.status_timeout,
        }


def _env_name(model: Type[BaseSettings], location: Any) -> str:
    """Map a validation error location to the environment variable name."""
    name = str(location)
    field = model.model_fields.get(name)
    if field is not None:
        if isinstance(field.validation_alias, str):
            return field.validation_alias
        return f"{model.model_config.get('env_prefix', '')}{name}".upper()
    return name.upper()


def _resolve(model: Type[BaseSettings], build: Callable[[], BaseSettings]) -> Any:
    """
    Build a settings model, turning validation failures into ConfigurationError.

    The message names the offending variables, never their values.
    """
    try:
        return build()
    except ValidationError as e:
        problems: List[str] = []
        for error in e.errors():
            location = error["loc"][0] if error["loc"] else "settings"
            if error["type"] == "missing":
                problems.append(f"{_env_name(model, location)} is required")
            else:
                problems.append(f"{_env_name(model, location)}: {error['msg']}")
        raise ConfigurationError("; ".join(problems)) from None


def load_settings(env_file: Optional[str] = ".env") -> WorkerSettings:
    """
    Resolve worker settings from the environment.

    Args:
        env_file: Optional dotenv file read in addition to the environment

    Returns:
        WorkerSettings: Immutable settings snapshot

    Raises:
        ConfigurationError: If a variable is missing or invalid
    """
    return _resolve(WorkerSettings, lambda: WorkerSettings(_env_file=env_file))


def load_ffmpeg_config(
    settings: WorkerSettings, env_file: Optional[str] = ".env"
) -> FFmpegConfig:
    """
    Resolve the capture process settings (``FFMPEG_*`` variables).

    The quality profile always follows ``settings.quality`` so the browser
    window and the capture geometry agree.

    Args:
        settings: Resolved worker settings
        env_file: Optional dotenv file read in addition to the environment

    Returns:
        FFmpegConfig: Capture process configuration

    Raises:
        ConfigurationError: If a variable is invalid
    """
    return _resolve(
        FFmpegConfig,
        lambda: FFmpegConfig(_env_file=env_file, quality=settings.quality),
    )
