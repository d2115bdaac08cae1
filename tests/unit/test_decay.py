"""
Unit tests for the half-life decay policy.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from zync_memory.config import DecayConfig
from zync_memory.decay import (
    DEFAULT_DECAY_POLICY,
    MIN_DECAY_FACTOR,
    SECONDS_PER_HOUR,
    DecayPolicy,
)


class TestDecayFactor:
    """Tests for decay_factor()."""

    def test_no_elapsed_time(self):
        assert DecayPolicy(half_life_seconds=100).decay_factor(0) == 1.0

    def test_half_life(self):
        policy = DecayPolicy(half_life_seconds=100)

        assert policy.decay_factor(100) == pytest.approx(0.5)
        assert policy.decay_factor(200) == pytest.approx(0.25)

    def test_negative_elapsed_treated_as_zero(self):
        assert DecayPolicy(half_life_seconds=100).decay_factor(-50) == 1.0

    def test_monotone_and_positive(self):
        policy = DecayPolicy(half_life_seconds=10)
        factors = [policy.decay_factor(t) for t in (0, 1, 10, 100, 1000)]

        assert factors == sorted(factors, reverse=True)
        assert all(f > 0 for f in factors)

    @pytest.mark.parametrize("half_lives", [1100, 1e6, float("inf")])
    def test_factor_never_reaches_zero(self, half_lives):
        policy = DecayPolicy(half_life_seconds=1.0)

        factor = policy.decay_factor(half_lives)

        assert factor > 0.0
        assert factor == MIN_DECAY_FACTOR

    @pytest.mark.parametrize("half_life", [0, -1])
    def test_non_positive_half_life_rejected(self, half_life):
        with pytest.raises(ValueError, match="Half-life"):
            DecayPolicy(half_life_seconds=half_life)


class TestEffectiveConfidence:
    """Tests for effective_confidence() and should_prune()."""

    def test_scaled_by_factor(self):
        policy = DecayPolicy(half_life_seconds=100)

        assert policy.effective_confidence(0.8, timestamp=0, now=100) == pytest.approx(0.4)

    def test_future_timestamp_does_not_raise_confidence(self):
        policy = DecayPolicy(half_life_seconds=100)

        assert policy.effective_confidence(0.6, timestamp=500, now=0) == 0.6

    def test_should_prune_is_strict(self):
        policy = DecayPolicy(half_life_seconds=100)

        assert not policy.should_prune(0.5, timestamp=0, now=0, threshold=0.5)
        assert policy.should_prune(0.49, timestamp=0, now=0, threshold=0.5)
        assert policy.should_prune(0.8, timestamp=0, now=100, threshold=0.5)


class TestDefaults:
    """Tests for default and config-derived policies."""

    def test_default_half_life_is_one_week(self):
        assert DEFAULT_DECAY_POLICY.half_life_seconds == 168 * SECONDS_PER_HOUR

    def test_from_config(self):
        policy = DecayPolicy.from_config(DecayConfig(half_life_hours=2))

        assert policy.half_life_seconds == 2 * SECONDS_PER_HOUR
