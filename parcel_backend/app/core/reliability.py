"""
Reliability Utilities.

Circuit breaker guarding calls to the payment provider.
"""

import time
import logging
from typing import Callable, Any

logger = logging.getLogger(__name__)


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Simple Circuit Breaker implementation.
    After 'failure_threshold' consecutive failures the circuit opens and
    rejects calls until 'reset_timeout' seconds have passed; the next call
    is then let through as a probe (HALF_OPEN).
    Exceptions listed in 'excluded_exceptions' are caller errors: they
    propagate without counting as failures.
    """
    def __init__(self, name: str, failure_threshold: int = 5, reset_timeout: int = 60, excluded_exceptions=()):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.excluded_exceptions = tuple(excluded_exceptions)
        self.failures = 0
        self.last_failure_time = 0.0
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if time.monotonic() - self.last_failure_time > self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")

        try:
            result = await func(*args, **kwargs)
        except self.excluded_exceptions:
            raise
        except Exception:
            self.record_failure()
            raise
        if self.state != "CLOSED" or self.failures:
            self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = time.monotonic()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning("Circuit '%s' opened after %d failures", self.name, self.failures)
            self.state = "OPEN"

    def reset_state(self):
        if self.state != "CLOSED":
            logger.info("Circuit '%s' closed", self.name)
        self.failures = 0
        self.state = "CLOSED"
