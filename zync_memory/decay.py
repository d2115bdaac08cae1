"""
Temporal decay of memory confidence.

Pure computation, no graph mutation. Effective confidence is the stored
confidence scaled by an exponential half-life factor of the wall-clock time
elapsed since the node was created:

    effective = confidence * 0.5 ** (elapsed / half_life)

The factor is 1.0 at elapsed = 0, never increases with elapsed time, and
stays above zero for any finite elapsed time (it bottoms out at the smallest
normal float instead of underflowing). Negative elapsed time (clock
skew) is treated as zero so decay can never raise confidence.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass

from .config import DecayConfig

SECONDS_PER_HOUR = 60 * 60

# Floor for the decay factor; 0.5 ** x underflows to 0.0 past ~1075 half-lives
MIN_DECAY_FACTOR = sys.float_info.min


@dataclass(frozen=True)
class DecayPolicy:
    """
    Half-life decay policy.

    Args:
        half_life_seconds: Elapsed time after which confidence is halved
    """

    half_life_seconds: float = 168.0 * SECONDS_PER_HOUR

    def __post_init__(self) -> None:
        if not self.half_life_seconds > 0:
            raise ValueError(
                f"Half-life must be positive, got: {self.half_life_seconds}"
            )

    @classmethod
    def from_config(cls, config: DecayConfig) -> DecayPolicy:
        return cls(half_life_seconds=config.half_life_hours * SECONDS_PER_HOUR)

    def decay_factor(self, elapsed_seconds: float) -> float:
        """
        Multiplier in (0, 1] for the given elapsed time.

        Args:
            elapsed_seconds: Time since creation; negative values count as 0

        Returns:
            Decay multiplier, 1.0 when nothing has elapsed
        """
        elapsed = max(0.0, elapsed_seconds)
        return max(math.pow(0.5, elapsed / self.half_life_seconds), MIN_DECAY_FACTOR)

    def effective_confidence(self, confidence: float, timestamp: float, now: float) -> float:
        """Stored confidence adjusted for decay at time `now`."""
        effective = confidence * self.decay_factor(now - timestamp)
        # Ensure confidence doesn't increase
        return min(effective, confidence)

    def should_prune(
        self,
        confidence: float,
        timestamp: float,
        now: float,
        threshold: float,
    ) -> bool:
        """True when effective confidence is strictly below threshold."""
        return self.effective_confidence(confidence, timestamp, now) < threshold


DEFAULT_DECAY_POLICY = DecayPolicy()
