"""Tests for the single-step retry executor."""

import asyncio

import pytest

from waterfall.config import RETRY_BUDGET, RETRY_DELAY_SEC
from waterfall.runtime import RetryableStepError, attempt, retry


class TestAttempt:
    def test_success_returns_without_delay(self, clock, flaky):
        step = flaky(value="ok")
        result = asyncio.run(attempt(step, retries=3, sleep=clock.sleep))
        assert result == "ok"
        assert step.calls == [()]
        assert clock.sleeps == []

    @pytest.mark.parametrize("failures", [1, 2, 3])
    def test_recovers_within_budget(self, clock, flaky, failures):
        step = flaky(failures=failures, value=42)
        result = asyncio.run(attempt(step, "in", retries=3, delay_sec=2.0, sleep=clock.sleep))
        assert result == 42
        assert len(step.calls) == failures + 1
        assert clock.sleeps == [2.0] * failures

    def test_exhausted_budget_reraises_last_error_unchanged(self, clock, flaky):
        step = flaky(failures=10)
        with pytest.raises(RuntimeError) as excinfo:
            asyncio.run(attempt(step, "in", retries=3, delay_sec=2.0, sleep=clock.sleep))
        assert excinfo.value is step.errors[-1]
        assert len(step.calls) == 4
        assert clock.sleeps == [2.0, 2.0, 2.0]

    def test_zero_budget_is_a_single_attempt(self, clock, flaky):
        step = flaky(failures=1)
        with pytest.raises(RuntimeError):
            asyncio.run(attempt(step, retries=0, sleep=clock.sleep))
        assert len(step.calls) == 1
        assert clock.sleeps == []

    def test_negative_budget_rejected(self, clock, flaky):
        step = flaky(value=1)
        with pytest.raises(ValueError):
            asyncio.run(attempt(step, retries=-1, sleep=clock.sleep))
        assert step.calls == []

    def test_every_attempt_receives_the_same_input(self, clock, flaky):
        payload = {"id": 7}
        step = flaky(failures=2, transform=lambda value: value)
        result = asyncio.run(attempt(step, payload, sleep=clock.sleep))
        assert result is payload
        assert all(call[0] is payload for call in step.calls)

    def test_on_retry_reports_each_failed_attempt(self, clock, flaky):
        seen = []
        step = flaky(failures=2, value="done")
        asyncio.run(
            attempt(
                step,
                retries=3,
                delay_sec=0.5,
                sleep=clock.sleep,
                on_retry=lambda n, err, delay: seen.append((n, err, delay)),
            )
        )
        assert seen == [(1, step.errors[0], 0.5), (2, step.errors[1], 0.5)]

    def test_logical_failure_payload_survives(self, clock):
        calls = []

        async def rejecting():
            calls.append(1)
            raise RetryableStepError("missing", payload="___MISSING___")

        with pytest.raises(RetryableStepError) as excinfo:
            asyncio.run(attempt(rejecting, retries=1, sleep=clock.sleep))
        assert excinfo.value.payload == "___MISSING___"
        assert len(calls) == 2

    def test_cancellation_is_not_retried(self, clock):
        calls = []

        async def cancelled():
            calls.append(1)
            raise asyncio.CancelledError()

        async def scenario():
            with pytest.raises(asyncio.CancelledError):
                await attempt(cancelled, retries=3, sleep=clock.sleep)

        asyncio.run(scenario())
        assert calls == [1]
        assert clock.sleeps == []

    def test_plain_callable_result_is_accepted(self, clock):
        assert asyncio.run(attempt(lambda x: x + 1, 1, sleep=clock.sleep)) == 2

    def test_defaults_match_named_constants(self, clock, flaky):
        step = flaky(failures=10)
        with pytest.raises(RuntimeError):
            asyncio.run(attempt(step, sleep=clock.sleep))
        assert len(step.calls) == RETRY_BUDGET + 1
        assert clock.sleeps == [RETRY_DELAY_SEC] * RETRY_BUDGET
        assert RETRY_BUDGET == 3
        assert RETRY_DELAY_SEC == 2.0

    def test_callback_error_is_not_treated_as_step_failure(self, clock, flaky):
        def callback(attempt_no, err, delay):
            raise LookupError("callback broke")

        step = flaky(failures=1, value="ok")
        with pytest.raises(LookupError):
            asyncio.run(attempt(step, retries=3, sleep=clock.sleep, on_retry=callback))
        assert len(step.calls) == 1
        assert clock.sleeps == []


class TestRetryDecorator:
    def test_retries_with_original_arguments(self, clock):
        calls = []

        @retry(retries=2, delay_sec=1.0, sleep=clock.sleep)
        async def fetch(key, *, scale=1):
            calls.append((key, scale))
            if len(calls) < 3:
                raise ConnectionError("down")
            return key * scale

        assert asyncio.run(fetch("ab", scale=2)) == "abab"
        assert calls == [("ab", 2)] * 3
        assert clock.sleeps == [1.0, 1.0]

    def test_exhaustion_propagates(self, clock):
        @retry(retries=1, delay_sec=1.0, sleep=clock.sleep)
        async def broken():
            raise KeyError("nope")

        with pytest.raises(KeyError):
            asyncio.run(broken())
        assert clock.sleeps == [1.0]

    def test_preserves_metadata(self):
        @retry()
        async def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

    def test_negative_budget_rejected_at_decoration(self):
        with pytest.raises(ValueError):
            retry(retries=-1)
