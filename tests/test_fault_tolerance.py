import asyncio

import pytest

from app.core.errors import AccountNotFoundError, DataAccessError, ServiceUnavailableError
from app.core.fault_tolerance import (
    CircuitBreaker,
    CircuitState,
    fault_boundary,
    get_breaker,
    register_breaker,
    reset_breakers,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _breaker(clock: FakeClock, **overrides) -> CircuitBreaker:
    options = dict(
        timeout=0.5,
        window_seconds=60,
        min_calls=4,
        failure_ratio=0.5,
        delay_seconds=5,
        success_threshold=1,
        clock=clock,
    )
    options.update(overrides)
    return CircuitBreaker("test", **options)


async def _ok():
    return "ok"


async def _boom():
    raise ConnectionError("connection refused")


async def _missing():
    raise AccountNotFoundError("Account not found with ID: x")


async def _db_down():
    raise DataAccessError("Failed to load account.")


async def _trip(breaker: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        with pytest.raises(ServiceUnavailableError):
            await breaker.call(_boom)


class TestCircuitBreaker:
    async def test_success_passes_result_through(self):
        breaker = _breaker(FakeClock())
        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    async def test_failure_without_fallback_raises_service_unavailable(self):
        breaker = _breaker(FakeClock())

        with pytest.raises(ServiceUnavailableError) as excinfo:
            await breaker.call(_boom)

        assert isinstance(excinfo.value.__cause__, ConnectionError)

    async def test_fallback_result_is_returned(self):
        breaker = _breaker(FakeClock())
        assert await breaker.call(_boom, fallback=lambda exc: "cached") == "cached"

    async def test_async_fallback_is_awaited(self):
        breaker = _breaker(FakeClock())

        async def fallback(exc):
            return type(exc).__name__

        assert await breaker.call(_boom, fallback=fallback) == "ConnectionError"

    async def test_timeout_routes_to_fallback(self):
        breaker = _breaker(FakeClock(), timeout=0.01)

        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(ServiceUnavailableError) as excinfo:
            await breaker.call(slow)

        assert isinstance(excinfo.value.__cause__, asyncio.TimeoutError)

    async def test_domain_errors_pass_through_and_do_not_trip(self):
        breaker = _breaker(FakeClock(), min_calls=2)

        for _ in range(5):
            with pytest.raises(AccountNotFoundError):
                await breaker.call(_missing)

        assert breaker.state is CircuitState.CLOSED

    async def test_data_access_errors_pass_through_but_count_as_failures(self):
        breaker = _breaker(FakeClock(), min_calls=2)

        for _ in range(2):
            with pytest.raises(DataAccessError):
                await breaker.call(_db_down)

        assert breaker.state is CircuitState.OPEN

    async def test_opens_at_failure_ratio_after_min_calls(self):
        breaker = _breaker(FakeClock())

        await breaker.call(_ok)
        await breaker.call(_ok)
        await _trip(breaker, 1)
        assert breaker.state is CircuitState.CLOSED

        await _trip(breaker, 1)
        assert breaker.state is CircuitState.OPEN

    async def test_stays_closed_below_min_calls(self):
        breaker = _breaker(FakeClock())
        await _trip(breaker, 3)
        assert breaker.state is CircuitState.CLOSED

    async def test_open_circuit_short_circuits(self):
        breaker = _breaker(FakeClock())
        await _trip(breaker, 4)
        calls = []

        async def tracked():
            calls.append(1)
            return "ok"

        with pytest.raises(ServiceUnavailableError):
            await breaker.call(tracked)
        assert calls == []

    async def test_half_open_trial_success_closes(self):
        clock = FakeClock()
        breaker = _breaker(clock)
        await _trip(breaker, 4)

        clock.advance(5)
        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    async def test_half_open_trial_failure_reopens(self):
        clock = FakeClock()
        breaker = _breaker(clock)
        await _trip(breaker, 4)

        clock.advance(5)
        await _trip(breaker, 1)
        assert breaker.state is CircuitState.OPEN

        clock.advance(1)
        with pytest.raises(ServiceUnavailableError):
            await breaker.call(_ok)

    async def test_half_open_admits_one_trial_under_concurrency(self):
        clock = FakeClock()
        breaker = _breaker(clock)
        await _trip(breaker, 4)
        clock.advance(5)
        admitted = []

        async def slow_failure():
            admitted.append(1)
            await asyncio.sleep(0.01)
            raise ConnectionError("still down")

        results = await asyncio.gather(
            *(breaker.call(slow_failure) for _ in range(20)), return_exceptions=True
        )

        assert len(admitted) == 1
        assert all(isinstance(r, ServiceUnavailableError) for r in results)
        assert breaker.state is CircuitState.OPEN

    async def test_half_open_trials_limited_to_success_threshold(self):
        clock = FakeClock()
        breaker = _breaker(clock, success_threshold=2)
        await _trip(breaker, 4)
        clock.advance(5)
        admitted = []

        async def slow_ok():
            admitted.append(1)
            await asyncio.sleep(0.01)
            return "ok"

        results = await asyncio.gather(
            *(breaker.call(slow_ok, fallback=lambda exc: "fallback") for _ in range(6))
        )

        assert len(admitted) == 2
        assert results.count("ok") == 2
        assert results.count("fallback") == 4
        assert breaker.state is CircuitState.CLOSED

    async def test_late_trial_from_earlier_period_is_ignored(self):
        clock = FakeClock()
        breaker = _breaker(clock, success_threshold=2)
        await _trip(breaker, 4)
        clock.advance(5)
        release_stale = asyncio.Event()
        release_fresh = asyncio.Event()

        async def stale_call():
            await release_stale.wait()
            return "stale"

        async def fresh_call():
            await release_fresh.wait()
            return "fresh"

        stale = asyncio.create_task(breaker.call(stale_call))
        await asyncio.sleep(0)
        await _trip(breaker, 1)
        clock.advance(5)
        fresh = asyncio.create_task(breaker.call(fresh_call))
        await asyncio.sleep(0)

        release_stale.set()
        assert await stale == "stale"
        assert breaker.state is CircuitState.HALF_OPEN

        release_fresh.set()
        assert await fresh == "fresh"
        assert breaker.state is CircuitState.HALF_OPEN

        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    async def test_old_outcomes_leave_the_window(self):
        clock = FakeClock()
        breaker = _breaker(clock)
        await _trip(breaker, 3)

        clock.advance(61)
        await breaker.call(_ok)
        await breaker.call(_ok)
        await breaker.call(_ok)
        await _trip(breaker, 1)

        assert breaker.state is CircuitState.CLOSED

    async def test_cancellation_propagates(self):
        breaker = _breaker(FakeClock(), timeout=5)
        started = asyncio.Event()

        async def hang():
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(breaker.call(hang, fallback=lambda exc: "fallback"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestFaultBoundary:
    async def test_decorator_uses_named_breaker_and_message(self):
        @fault_boundary("lookup", "Lookup is down.")
        async def lookup():
            raise RuntimeError("socket closed")

        with pytest.raises(ServiceUnavailableError, match="Lookup is down."):
            await lookup()

        assert get_breaker("lookup").name == "lookup"

    async def test_registered_breaker_is_used(self):
        clock = FakeClock()
        breaker = register_breaker(_breaker(clock, min_calls=1))

        @fault_boundary("test", "Test dependency unavailable.")
        async def flaky():
            raise RuntimeError("nope")

        with pytest.raises(ServiceUnavailableError):
            await flaky()

        assert get_breaker("test") is breaker
        assert breaker.state is CircuitState.OPEN

    async def test_reset_drops_breakers(self):
        first = get_breaker("lookup")
        reset_breakers()
        assert get_breaker("lookup") is not first
