"""Circuit breaker for LLM providers."""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAYS = [1, 2, 4]  # seconds


class CircuitBreaker:
    """Stops calling a provider after repeated consecutive failures.

    Once ``failure_threshold`` failures accumulate the circuit opens and
    every call is refused until ``cooldown_seconds`` have passed, after
    which a single trial call is allowed through (half-open).
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        cooldown_seconds: float = 60,
        time_func: Callable[[], float] | None = None,
    ):
        """Initialize circuit breaker.

        Args:
            name: Provider name, used in log messages
            failure_threshold: Consecutive failures before the circuit opens
            cooldown_seconds: Seconds to wait before allowing a trial call
            time_func: Clock returning seconds (default: time.monotonic).
                       Inject a fake clock for deterministic tests.
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._time_func = time_func or time.monotonic
        self.failure_count = 0
        self.opened_at: float | None = None

    @property
    def state(self) -> str:
        """One of ``closed``, ``open`` or ``half_open``."""
        if self.opened_at is None:
            return "closed"
        if self._time_func() - self.opened_at >= self.cooldown_seconds:
            return "half_open"
        return "open"

    @property
    def circuit_open(self) -> bool:
        return self.state == "open"

    def record_success(self) -> None:
        if self.opened_at is not None:
            logger.info("Circuit breaker for %s closed after successful call", self.name)
        self.failure_count = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.state == "half_open" or self.failure_count >= self.failure_threshold:
            if self.opened_at is None:
                logger.warning(
                    "Circuit breaker for %s opened after %d failures; cooling down for %ss",
                    self.name,
                    self.failure_count,
                    self.cooldown_seconds,
                )
            self.opened_at = self._time_func()

    def can_attempt(self) -> bool:
        """Check whether a call may go through right now."""
        return self.state != "open"

    def reset(self) -> None:
        self.failure_count = 0
        self.opened_at = None


_circuit_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(provider: str) -> CircuitBreaker:
    """Get or create the shared circuit breaker for a provider."""
    if provider not in _circuit_breakers:
        _circuit_breakers[provider] = CircuitBreaker(name=provider)
    return _circuit_breakers[provider]


def reset_circuit_breakers() -> None:
    """Drop all shared circuit breakers."""
    _circuit_breakers.clear()
