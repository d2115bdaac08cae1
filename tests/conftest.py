"""
Pytest configuration and fixtures for Zync memory tests.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path so we can import the zync_memory package
sys.path.insert(0, str(Path(__file__).parent.parent))

from zync_memory.config import ZyncMemoryConfig
from zync_memory.decay import DecayPolicy
from zync_memory.engine import MemoryEngine
from zync_memory.lattice import SymbolicLattice
from zync_memory.topological_memory import TopologicalMemory

HOUR = 60 * 60
DAY = 24 * HOUR


class FakeClock:
    """Manually advanced clock returning POSIX seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def memory(clock):
    """Provide an empty topological memory with a one-day half-life."""
    return TopologicalMemory(decay_policy=DecayPolicy(half_life_seconds=DAY), clock=clock)


@pytest.fixture
def lattice():
    """Provide an empty symbolic lattice with default weights."""
    return SymbolicLattice()


@pytest.fixture
def engine(clock):
    """Provide a memory engine with default configuration."""
    return MemoryEngine(config=ZyncMemoryConfig(), clock=clock)


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "hypothesis: property-based tests"
    )
    config.addinivalue_line(
        "markers", "slow: tests that take >1s"
    )
