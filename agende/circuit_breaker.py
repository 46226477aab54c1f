"""Circuit breaker for calls to external services (Google Calendar).

States:
- CLOSED: calls pass through
- OPEN: calls fail immediately until the cool-down elapses
- HALF_OPEN: one trial call decides between CLOSED and OPEN
"""
import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised instead of calling the service while the circuit is open."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is open. Retry after {retry_after:.1f}s")


class CircuitBreaker:
    """Counts consecutive failures of one external dependency and fails fast when it is down."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout: float = 60,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Args:
            name: Dependency name, used in logs and errors
            failure_threshold: Consecutive failures before opening
            reset_timeout: Seconds to stay open before a trial call
            clock: Monotonic time source (tests pass a fake one)
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock or time.monotonic
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._state = CircuitState.CLOSED

    @property
    def state(self) -> str:
        return self._state.value

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Run func under the breaker.

        Raises:
            CircuitBreakerOpen: If the circuit is open
            Exception: Whatever func raises (counted as a failure)
        """
        if self._state == CircuitState.OPEN:
            remaining = self._remaining_cooldown()
            if remaining > 0:
                raise CircuitBreakerOpen(self.name, remaining)
            self._state = CircuitState.HALF_OPEN
            logger.info("Circuit '%s' half-open, allowing trial call", self.name)

        try:
            result = func(*args, **kwargs)
        except Exception:
            self._record_failure()
            raise

        self._record_success()
        return result

    def reset(self):
        """Force the circuit closed (e.g. after reconnecting the account)."""
        self._state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None

    def _remaining_cooldown(self) -> float:
        if self.opened_at is None:
            return 0
        return max(0.0, self.reset_timeout - (self._clock() - self.opened_at))

    def _record_success(self):
        if self._state == CircuitState.HALF_OPEN:
            logger.info("Circuit '%s' closed after successful trial call", self.name)
        self._state = CircuitState.CLOSED
        self.failure_count = 0

    def _record_failure(self):
        self.failure_count += 1
        if self._state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self.opened_at = self._clock()
            logger.warning(
                "Circuit '%s' opened after %d failure(s), cooling down %ss",
                self.name, self.failure_count, self.reset_timeout
            )
