import pytest

from ptcg_crawler.common.retry import is_retryable_error, retry_async


def test_is_retryable_error_patterns():
    assert is_retryable_error(RuntimeError("Network error"))
    assert is_retryable_error(RuntimeError("Timeout 30000ms exceeded"))
    assert is_retryable_error(RuntimeError("read ECONNRESET"))
    assert is_retryable_error(RuntimeError("connect econnrefused 127.0.0.1"))
    assert is_retryable_error(RuntimeError("socket hang up"))
    assert is_retryable_error(RuntimeError("Too Many Requests"))
    assert is_retryable_error(RuntimeError("HTTP 429"))
    assert not is_retryable_error(ValueError("unexpected token <"))
    assert not is_retryable_error(RuntimeError("status 4290"))


@pytest.mark.asyncio
async def test_retry_succeeds_after_two_failures():
    calls = 0

    async def flaky():
        nonlocal calls
        calls += 1
        if calls < 3:
            raise RuntimeError("network error")
        return "ok"

    result = await retry_async(flaky, max_attempts=3, initial_delay=0)
    assert result == "ok"
    assert calls == 3


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_immediately():
    calls = 0

    async def broken():
        nonlocal calls
        calls += 1
        raise ValueError("parse failure")

    with pytest.raises(ValueError, match="parse failure"):
        await retry_async(broken, max_attempts=3, initial_delay=0, should_retry=is_retryable_error)
    assert calls == 1


@pytest.mark.asyncio
async def test_last_error_reraised_after_exhausting_attempts():
    errors = [RuntimeError(f"timeout {i}") for i in range(3)]

    async def always_fails():
        raise errors.pop(0)

    with pytest.raises(RuntimeError, match="timeout 2"):
        await retry_async(always_fails, max_attempts=3, initial_delay=0)


@pytest.mark.asyncio
async def test_on_retry_hook_and_backoff(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("ptcg_crawler.common.retry.asyncio.sleep", fake_sleep)
    seen = []

    async def fails():
        raise RuntimeError("network down")

    with pytest.raises(RuntimeError):
        await retry_async(
            fails,
            max_attempts=4,
            initial_delay=1.0,
            backoff_multiplier=3.0,
            max_delay=5.0,
            on_retry=lambda e, attempt: seen.append((str(e), attempt)),
        )
    assert seen == [("network down", 1), ("network down", 2), ("network down", 3)]
    assert sleeps == [1.0, 3.0, 5.0]


@pytest.mark.asyncio
async def test_max_attempts_must_be_positive():
    async def noop():
        return None

    with pytest.raises(ValueError):
        await retry_async(noop, max_attempts=0)
