"""
Circuit Breaker - Stops hammering a JIRA instance that is down.

States:
- CLOSED: requests pass, consecutive failures counted
- OPEN: requests rejected with NetworkError until reset_timeout elapses
- HALF_OPEN: one trial request; success closes, failure reopens

Only transport failures and 5xx responses count. A 404 or 401 means JIRA
is up and answering.
"""

import time
from dataclasses import dataclass, field
from enum import Enum

import structlog

from ..errors import NetworkError

logger = structlog.get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Consecutive-failure circuit breaker.

    Example:
        circuit = CircuitBreaker(name="jira", failure_threshold=5)
        circuit.guard()
        try:
            response = await client.request(...)
        except httpx.TransportError:
            circuit.record_failure()
            raise
        circuit.record_success()
    """

    name: str = "jira"
    failure_threshold: int = 5
    reset_timeout: float = 30.0

    state: CircuitState = field(default=CircuitState.CLOSED)
    failure_count: int = field(default=0)
    opened_at: float = field(default=0.0)

    def guard(self) -> None:
        """Raise NetworkError if a request must not be attempted."""
        if self.state is CircuitState.OPEN:
            if time.monotonic() - self.opened_at < self.reset_timeout:
                raise NetworkError(f"{self.name} unavailable: circuit open")
            self._transition_to(CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        self.failure_count = 0
        if self.state is not CircuitState.CLOSED:
            self._transition_to(CircuitState.CLOSED)

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.state is CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self.opened_at = time.monotonic()
            self._transition_to(CircuitState.OPEN)

    def reset(self) -> None:
        self.failure_count = 0
        self._transition_to(CircuitState.CLOSED)

    def _transition_to(self, new_state: CircuitState) -> None:
        if self.state is new_state:
            return
        logger.info(
            "circuit_state_changed",
            connector=self.name,
            old=self.state.value,
            new=new_state.value,
            failures=self.failure_count,
        )
        self.state = new_state
