"""Timeout, retry and circuit-breaker wrapper for model completion calls."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitOpenError(RuntimeError):
    """Raised without calling the backend while its circuit is open."""


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


@dataclass(frozen=True)
class ResiliencePolicy:
    """How long one completion may take, how often to retry and when to stop trying."""

    name: str
    timeout_seconds: float
    max_attempts: int = 1
    backoff_seconds: float = 0.5
    circuit_failure_threshold: int = 3
    circuit_reset_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.timeout_seconds < 0:
            raise ValueError("timeout_seconds may not be negative.")


class CircuitBreaker:
    """Open after ``failure_threshold`` consecutive failures; probe again after ``reset_seconds``.

    A failed probe in the half-open state re-opens the circuit immediately.
    """

    def __init__(
        self,
        *,
        failure_threshold: int,
        reset_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1.")
        if reset_seconds < 0:
            raise ValueError("reset_seconds may not be negative.")
        self._threshold = failure_threshold
        self._reset_after = reset_seconds
        self._clock = clock
        self._consecutive_failures = 0
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        return self._state

    def allow(self) -> bool:
        if self._state is not CircuitState.OPEN:
            return True
        if self._clock() - self._opened_at >= self._reset_after:
            self._state = CircuitState.HALF_OPEN
            return True
        return False

    def record_success(self) -> None:
        self._consecutive_failures = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> bool:
        """Count a failure; return True when this failure opened the circuit."""

        self._consecutive_failures += 1
        tripped = (
            self._state is CircuitState.HALF_OPEN
            or self._consecutive_failures >= self._threshold
        )
        if tripped and self._state is not CircuitState.OPEN:
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            return True
        return False


class ServiceResilienceExecutor(Generic[T]):
    """Run an async operation under a ``ResiliencePolicy``.

    Only exceptions listed in ``retry_on`` (and timeouts) are retried and
    counted against the breaker; anything else propagates on the first attempt.
    """

    def __init__(
        self,
        policy: ResiliencePolicy,
        *,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> None:
        self._policy = policy
        self._retry_on = retry_on
        self._breaker = CircuitBreaker(
            failure_threshold=policy.circuit_failure_threshold,
            reset_seconds=policy.circuit_reset_seconds,
        )

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def run(
        self, *, label: str | None = None, operation: Callable[[], Awaitable[T]]
    ) -> T:
        name = label or self._policy.name
        if not self._breaker.allow():
            LOGGER.warning("service.circuit_open", extra={"extra_payload": {"service": name}})
            raise CircuitOpenError(f"Service '{name}' circuit is open")

        failure: BaseException | None = None
        for attempt in range(1, self._policy.max_attempts + 1):
            try:
                result = await self._attempt(operation)
            except asyncio.TimeoutError as exc:
                failure = exc
                self._failed(
                    name, attempt, "service.timeout", timeout_seconds=self._policy.timeout_seconds
                )
            except self._retry_on as exc:
                failure = exc
                self._failed(name, attempt, "service.failure", error=str(exc))
            else:
                self._breaker.record_success()
                return result

            if self._breaker.state is CircuitState.OPEN:
                break
            if attempt < self._policy.max_attempts and self._policy.backoff_seconds > 0:
                await asyncio.sleep(self._policy.backoff_seconds * attempt)

        assert failure is not None
        raise failure

    async def _attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        timeout = self._policy.timeout_seconds
        if timeout <= 0:
            return await operation()
        async with asyncio.timeout(timeout):
            return await operation()

    def _failed(self, name: str, attempt: int, event: str, **context: object) -> None:
        LOGGER.warning(
            event,
            extra={"extra_payload": {"service": name, "attempt": attempt, **context}},
        )
        if self._breaker.record_failure():
            LOGGER.error("service.circuit_opened", extra={"extra_payload": {"service": name}})


__all__ = [
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "ResiliencePolicy",
    "ServiceResilienceExecutor",
]
