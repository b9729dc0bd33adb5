"""Shared test fixtures."""

import asyncio

import pytest


class FakeClock:
    """Injectable sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        # Still yield so concurrent runs interleave.
        await asyncio.sleep(0)


class FlakyStep:
    """Async step failing ``failures`` times before returning a value."""

    def __init__(self, failures: int = 0, value=None, transform=None) -> None:
        self.failures = failures
        self.value = value
        self.transform = transform
        self.calls: list[tuple] = []
        self.errors: list[Exception] = []

    async def __call__(self, *args):
        self.calls.append(args)
        await asyncio.sleep(0)
        if len(self.calls) <= self.failures:
            err = RuntimeError(f"failure #{len(self.calls)}")
            self.errors.append(err)
            raise err
        if self.transform is not None:
            return self.transform(*args)
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def flaky():
    """Factory for :class:`FlakyStep` instances."""
    return FlakyStep
