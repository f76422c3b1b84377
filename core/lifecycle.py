# ============================================================================
# SERVICE LIFECYCLE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Lifecycle state machine
# PURPOSE: Track Starting -> Serving -> Draining -> Stopped and in-flight work
# CREATED: 19 OCT 2026
# ============================================================================
"""
Service Lifecycle

State machine for the probe service process:

    STARTING --bind ok--> SERVING --SIGTERM--> DRAINING --drained--> STOPPED
    STARTING --bind failed--> STOPPED

The endpoint consults the state to refuse new work while draining and
uses track_request() so shutdown logs report what was still running.
"""

import logging
from contextlib import contextmanager
from typing import Dict, FrozenSet, Iterator

from core.contracts import ServiceState

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised on a lifecycle transition the state machine does not allow."""
    def __init__(self, current: ServiceState, target: ServiceState):
        self.current = current
        self.target = target
        super().__init__(f"Invalid lifecycle transition: {current.value} -> {target.value}")


class ServiceLifecycle:
    """Lifecycle state and in-flight request counter for one process."""

    TRANSITIONS: Dict[ServiceState, FrozenSet[ServiceState]] = {
        ServiceState.STARTING: frozenset({ServiceState.SERVING, ServiceState.STOPPED}),
        ServiceState.SERVING: frozenset({ServiceState.DRAINING, ServiceState.STOPPED}),
        ServiceState.DRAINING: frozenset({ServiceState.STOPPED}),
        ServiceState.STOPPED: frozenset(),
    }

    def __init__(self):
        self._state = ServiceState.STARTING
        self._in_flight = 0

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def accepting(self) -> bool:
        """True unless the service is draining or stopped."""
        return self._state in (ServiceState.STARTING, ServiceState.SERVING)

    def can_transition(self, target: ServiceState) -> bool:
        return target in self.TRANSITIONS[self._state]

    def transition(self, target: ServiceState) -> None:
        """
        Move to a new state.

        Raises:
            InvalidTransitionError: if the move is not allowed
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self._state, target)
        previous = self._state
        self._state = target
        logger.info(
            f"Service state {previous.value} -> {target.value} "
            f"(in_flight={self._in_flight})"
        )

    @contextmanager
    def track_request(self) -> Iterator[None]:
        """Count a request as in flight for the duration of the block."""
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1


__all__ = [
    "InvalidTransitionError",
    "ServiceLifecycle",
]
