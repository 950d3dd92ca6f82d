"""
Worker lifecycle state machine and stream deadline.

States only move forward::

    starting -> streaming -> stopping -> stopped
        |           |           ^
        +--------> errored -----+
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, FrozenSet, List

from stream_worker.errors import LifecycleError

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    """Worker lifecycle states."""

    STARTING = "starting"
    STREAMING = "streaming"
    ERRORED = "errored"
    STOPPING = "stopping"
    STOPPED = "stopped"


_TRANSITIONS: Dict[LifecycleState, FrozenSet[LifecycleState]] = {
    LifecycleState.STARTING: frozenset(
        {LifecycleState.STREAMING, LifecycleState.ERRORED, LifecycleState.STOPPING}
    ),
    LifecycleState.STREAMING: frozenset({LifecycleState.STOPPING, LifecycleState.ERRORED}),
    LifecycleState.ERRORED: frozenset({LifecycleState.STOPPING}),
    LifecycleState.STOPPING: frozenset({LifecycleState.STOPPED}),
    LifecycleState.STOPPED: frozenset(),
}


class Lifecycle:
    """Tracks the current lifecycle state and rejects illegal transitions."""

    def __init__(self) -> None:
        self.state = LifecycleState.STARTING
        self.history: List[LifecycleState] = [self.state]

    def can_transition(self, target: LifecycleState) -> bool:
        return target in _TRANSITIONS[self.state]

    def transition(self, target: LifecycleState) -> None:
        """
        Move to a new state.

        Args:
            target: State to enter

        Raises:
            LifecycleError: If the transition is not allowed from the current state
        """
        if not self.can_transition(target):
            raise LifecycleError(
                f"Illegal lifecycle transition: {self.state.value} -> {target.value}"
            )
        logger.debug(f"Lifecycle: {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    @property
    def is_stopped(self) -> bool:
        return self.state == LifecycleState.STOPPED


@dataclass(frozen=True)
class Deadline:
    """Point in time at which streaming ends.

    Attributes:
        expires_at: Expiry on the monotonic clock
        wall_clock: The same instant in UTC, for logging
    """

    expires_at: float
    wall_clock: datetime

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        """Create a deadline ``seconds`` from now."""
        return cls(
            expires_at=clock() + seconds,
            wall_clock=datetime.now(timezone.utc) + timedelta(seconds=seconds),
        )

    def remaining(self, clock: Callable[[], float] = time.monotonic) -> float:
        """Seconds left before expiry, never negative."""
        return max(0.0, self.expires_at - clock())

    def expired(self, clock: Callable[[], float] = time.monotonic) -> bool:
        return self.remaining(clock) <= 0
