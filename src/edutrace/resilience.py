"""Retry and circuit breaking around external service calls.

Only failures classified as ``ErrorKind.TRANSIENT`` are retried or counted
by the breaker; not-found, conflict and validation failures pass straight
through.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from edutrace.errors import DataServiceError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, DataServiceError) and exc.kind is ErrorKind.TRANSIENT


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Stop calling a failing service for ``recovery_timeout`` seconds."""

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        if (
            self._state is CircuitState.OPEN
            and self._opened_at is not None
            and self._clock() - self._opened_at >= self.recovery_timeout
        ):
            self._state = CircuitState.HALF_OPEN
            logger.warning("Circuit %s half-open, allowing a trial call", self.name)
        return self._state

    def before_call(self) -> None:
        if self.state is CircuitState.OPEN:
            now = self._clock()
            opened_at = self._opened_at if self._opened_at is not None else now
            remaining = max(0.0, self.recovery_timeout - (now - opened_at))
            raise DataServiceError(
                ErrorKind.UNAVAILABLE,
                f"Circuit '{self.name}' is open. Retry after {remaining:.1f}s",
            )

    def record_success(self) -> None:
        if self._state is not CircuitState.CLOSED:
            logger.warning("Circuit %s closed", self.name)
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failure_count += 1
        if (
            self._state is CircuitState.HALF_OPEN
            or self._failure_count >= self.failure_threshold
        ):
            if self._state is not CircuitState.OPEN:
                logger.warning(
                    "Circuit %s opened after %d failures",
                    self.name,
                    self._failure_count,
                )
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        self.before_call()
        try:
            result = await fn()
        except Exception as exc:
            if _is_transient(exc):
                self.record_failure()
            raise
        self.record_success()
        return result


class RetryPolicy:
    """Bounded exponential backoff for transient failures."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.2,
        max_delay: float = 2.0,
        multiplier: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        return min(self.max_delay, self.base_delay * (self.multiplier**attempt))

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except DataServiceError as exc:
                if not _is_transient(exc) or attempt + 1 >= self.max_attempts:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Transient data service failure (%s), retry %d/%d in %.2fs",
                    exc,
                    attempt + 1,
                    self.max_attempts - 1,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
