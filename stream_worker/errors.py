"""Exception hierarchy for the stream worker."""


class StreamWorkerError(Exception):
    """Base class for stream worker errors."""


class ConfigurationError(StreamWorkerError):
    """Missing or invalid configuration. Raised before any resource is acquired."""


class StartupError(StreamWorkerError):
    """A required component could not be started."""


class LifecycleError(StreamWorkerError):
    """An illegal lifecycle state transition was attempted."""
