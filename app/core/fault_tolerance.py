"""Timeout, circuit breaking and fallback around calls to external collaborators."""
from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple

from app.core.config import settings
from app.core.errors import AccountServiceError, DataAccessError, ServiceUnavailableError

logger = logging.getLogger(__name__)

Fallback = Callable[[BaseException], Any]


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    """Raised internally when a call is short-circuited by an open breaker."""


class CircuitBreaker:
    """Track call outcomes in a rolling time window and short-circuit when unhealthy.

    CLOSED: calls go through; once ``min_calls`` outcomes sit in the window and
    the failure ratio reaches ``failure_ratio`` the breaker opens.
    OPEN: calls are rejected until ``delay_seconds`` have elapsed, then the next
    call is admitted as a trial in HALF_OPEN.
    HALF_OPEN: at most ``success_threshold`` trial calls run at a time and
    everyone else gets the fallback; that many successful trials close the
    breaker, any failed trial re-opens it.
    """

    def __init__(
        self,
        name: str,
        *,
        timeout: float,
        window_seconds: float,
        min_calls: int,
        failure_ratio: float,
        delay_seconds: float,
        success_threshold: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.timeout = timeout
        self.window_seconds = window_seconds
        self.min_calls = max(1, min_calls)
        self.failure_ratio = failure_ratio
        self.delay_seconds = delay_seconds
        self.success_threshold = max(1, success_threshold)
        self._clock = clock
        self._outcomes: Deque[Tuple[float, bool]] = deque()
        self._lock = asyncio.Lock()
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._trial_successes = 0
        self._trials_in_flight = 0
        self._generation = 0

    @classmethod
    def from_settings(cls, name: str) -> "CircuitBreaker":
        return cls(
            name,
            timeout=settings.FAULT_TIMEOUT_SECONDS,
            window_seconds=settings.CIRCUIT_WINDOW_SECONDS,
            min_calls=settings.CIRCUIT_MIN_CALLS,
            failure_ratio=settings.CIRCUIT_FAILURE_RATIO,
            delay_seconds=settings.CIRCUIT_DELAY_SECONDS,
            success_threshold=settings.CIRCUIT_SUCCESS_THRESHOLD,
        )

    @property
    def state(self) -> CircuitState:
        return self._state

    async def call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        fallback: Optional[Fallback] = None,
        **kwargs: Any,
    ) -> Any:
        """Run ``func`` under the breaker, routing failures to ``fallback``.

        Domain errors are the caller's answer, not a dependency failure: they
        are re-raised and counted as successes. ``DataAccessError`` is re-raised
        but counted as a failure. Timeouts and any other exception count as
        failures and are handed to the fallback. Cancellation is never caught.
        """
        admitted, trial = await self._acquire()
        if not admitted:
            return await self._run_fallback(
                fallback, CircuitOpenError(f"Circuit '{self.name}' is open")
            )

        try:
            result = await asyncio.wait_for(func(*args, **kwargs), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Call through circuit %s timed out after %.2fs", self.name, self.timeout)
            await self._record(success=False, trial=trial)
            return await self._run_fallback(fallback, exc)
        except DataAccessError:
            await self._record(success=False, trial=trial)
            raise
        except AccountServiceError:
            await self._record(success=True, trial=trial)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Call through circuit %s failed: %s", self.name, exc)
            await self._record(success=False, trial=trial)
            return await self._run_fallback(fallback, exc)

        await self._record(success=True, trial=trial)
        return result

    async def _acquire(self) -> Tuple[bool, Optional[int]]:
        """Return ``(admitted, trial)``; ``trial`` is the HALF_OPEN period a trial call belongs to."""
        async with self._lock:
            if self._state is CircuitState.OPEN:
                if self._clock() - self._opened_at < self.delay_seconds:
                    return False, None
                self._transition(CircuitState.HALF_OPEN)

            if self._state is CircuitState.HALF_OPEN:
                if self._trials_in_flight >= self.success_threshold:
                    return False, None
                self._trials_in_flight += 1
                return True, self._generation

            return True, None

    async def _record(self, *, success: bool, trial: Optional[int] = None) -> None:
        async with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                if trial != self._generation:
                    # Admitted while CLOSED or in an earlier trial period.
                    return
                self._trials_in_flight -= 1
                if not success:
                    self._transition(CircuitState.OPEN)
                    return
                self._trial_successes += 1
                if self._trial_successes >= self.success_threshold:
                    self._transition(CircuitState.CLOSED)
                return

            if self._state is CircuitState.OPEN:
                # Result of a call admitted before the breaker opened.
                return

            now = self._clock()
            self._outcomes.append((now, success))
            window_start = now - self.window_seconds
            while self._outcomes and self._outcomes[0][0] < window_start:
                self._outcomes.popleft()

            if len(self._outcomes) < self.min_calls:
                return

            failures = sum(1 for _, ok in self._outcomes if not ok)
            if failures / len(self._outcomes) >= self.failure_ratio:
                self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        logger.warning("Circuit %s: %s -> %s", self.name, self._state.value, new_state.value)
        self._state = new_state
        self._generation += 1
        self._outcomes.clear()
        self._trial_successes = 0
        self._trials_in_flight = 0
        if new_state is CircuitState.OPEN:
            self._opened_at = self._clock()

    async def _run_fallback(self, fallback: Optional[Fallback], exc: BaseException) -> Any:
        if fallback is None:
            raise ServiceUnavailableError(f"'{self.name}' is temporarily unavailable.") from exc
        result = fallback(exc)
        if inspect.isawaitable(result):
            result = await result
        return result


_breakers: dict[str, CircuitBreaker] = {}


def get_breaker(name: str) -> CircuitBreaker:
    """Return the process-wide breaker for ``name``, creating it from settings."""
    breaker = _breakers.get(name)
    if breaker is None:
        breaker = CircuitBreaker.from_settings(name)
        _breakers[name] = breaker
    return breaker


def register_breaker(breaker: CircuitBreaker) -> CircuitBreaker:
    _breakers[breaker.name] = breaker
    return breaker


def reset_breakers() -> None:
    _breakers.clear()


def unavailable(name: str, message: str) -> Fallback:
    """Fallback that converts any failure into a stable ServiceUnavailableError."""

    def _fallback(exc: BaseException) -> Any:
        logger.error("Fallback engaged for %s. Cause: %s", name, str(exc) or type(exc).__name__)
        raise ServiceUnavailableError(message) from exc

    return _fallback


def fault_boundary(name: str, message: str) -> Callable:
    """Decorate an async callable so it runs through the breaker called ``name``."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        fallback = unavailable(name, message)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await get_breaker(name).call(func, *args, fallback=fallback, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "fault_boundary",
    "get_breaker",
    "register_breaker",
    "reset_breakers",
    "unavailable",
]
