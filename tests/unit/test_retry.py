"""Tests for RetryPolicy."""

import pytest

from assessment.scheduling.retry import RetryPolicy


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.mark.asyncio
async def test_first_success_returns_without_sleeping():
    sleep = RecordingSleep()
    policy = RetryPolicy(sleep=sleep)

    async def ok():
        return 42

    assert await policy.run(ok) == 42
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_retries_with_configured_delays():
    sleep = RecordingSleep()
    policy = RetryPolicy(delays_ms=(0, 1000, 3000), sleep=sleep)
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise RuntimeError("temporary db error")
        return "done"

    retried = []
    result = await policy.run(flaky, on_retry=lambda attempt, exc: retried.append(attempt))

    assert result == "done"
    assert len(calls) == 3
    assert sleep.calls == [1.0, 3.0]
    assert retried == [1, 2]


@pytest.mark.asyncio
async def test_last_error_propagates():
    sleep = RecordingSleep()
    policy = RetryPolicy(delays_ms=(0, 10), sleep=sleep)
    calls = []

    async def broken():
        calls.append(1)
        raise RuntimeError(f"failure {len(calls)}")

    with pytest.raises(RuntimeError, match="failure 2"):
        await policy.run(broken)
    assert len(calls) == 2


def test_rejects_empty_delays():
    with pytest.raises(ValueError):
        RetryPolicy(delays_ms=())


def test_rejects_negative_delays():
    with pytest.raises(ValueError):
        RetryPolicy(delays_ms=(0, -1))


@pytest.mark.asyncio
async def test_single_attempt_raises_original_error():
    policy = RetryPolicy(delays_ms=(0,), sleep=RecordingSleep())
    error = RuntimeError("database unavailable")
    retried = []

    async def broken():
        raise error

    with pytest.raises(RuntimeError) as excinfo:
        await policy.run(broken, on_retry=lambda attempt, exc: retried.append(attempt))

    assert excinfo.value is error
    assert retried == []
