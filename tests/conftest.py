"""
Pytest configuration and fixtures for episodes tests.
"""

import pytest
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from episodes.interfaces.platform import Platform


class FakePlatform(Platform):
    """Deterministic platform: manual clock, explicit lifecycle."""

    def __init__(self, now=10_000, timing=None, first_byte=None, recovered=None):
        self.current = now
        self.timing = timing
        self.first_byte = first_byte
        self.recovered = recovered
        self.lifecycle_callbacks = []
        self.exit_callbacks = []
        self.stored = []

    def now(self):
        return self.current

    def advance(self, ms):
        self.current += ms

    def navigation_timing(self):
        return self.timing

    def first_byte_hint(self):
        return self.first_byte

    def on_lifecycle_complete(self, callback):
        self.lifecycle_callbacks.append(callback)

    def on_context_exit(self, callback):
        self.exit_callbacks.append(callback)

    def recover_cross_context_start_time(self):
        return self.recovered

    def store_cross_context_start_time(self, time_ms):
        self.stored.append(time_ms)

    def complete(self):
        for callback in self.lifecycle_callbacks:
            callback()

    def exit(self):
        for callback in self.exit_callbacks:
            callback()


@pytest.fixture
def platform():
    """Fake platform with the clock at 10,000 ms."""
    return FakePlatform()


@pytest.fixture
def channel():
    """In-process channel collecting registry output."""
    from episodes.transport.base import InProcessChannel
    return InProcessChannel()


@pytest.fixture
def registry(platform, channel):
    """Registry wired to the fake platform and in-process channel."""
    from episodes.engine.registry import TimeRegistry
    return TimeRegistry(platform=platform, channel=channel)
