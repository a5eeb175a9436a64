"""
Shared fixtures for placeholder service tests.

Provides:
- `FakeClock`: manually advanced clock injected into cache and coordinator.
- `FakeImageGenerator`: in-process stand-in for the image provider that records
  calls and can be held until the test releases it.
No test talks to the network.
"""

import asyncio
import os
import sys

import pytest

# Ensure repo root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from placeholder_ai.core.coordinator import GenerationCoordinator
from placeholder_ai.core.result_cache import ResultCache


EXAMPLE_IMAGE_URL = "https://example.com/img.png"


class FakeClock:
    """Callable clock returning a manually advanced epoch time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeImageGenerator:
    """Async generator double with call recording and an optional hold gate."""

    def __init__(self, result=EXAMPLE_IMAGE_URL, error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.active = 0
        self.max_active = 0
        self.release = asyncio.Event()
        self.release.set()

    def hold(self):
        """Block generator calls until `release.set()` is called."""
        self.release.clear()

    async def __call__(self, prompt, width, height):
        self.calls.append((prompt, width, height))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.release.wait()
            if self.error is not None:
                raise self.error
            return self.result
        finally:
            self.active -= 1


async def settle(predicate, attempts=100):
    """Yield to the event loop until `predicate()` is true."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(clock=clock)


@pytest.fixture
def generator():
    return FakeImageGenerator()


@pytest.fixture
def coordinator(cache, generator, clock):
    return GenerationCoordinator(cache, generator=generator, clock=clock)
