"""Outcome and latency policy for simulated oracle requests.

A policy answers two questions for every fabricated request: does it fail,
and how long does the (fake) external call take. Both answers depend only on
the node's quality tier.
"""
import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class QualityTier(Enum):
    """Behaviour profile of a node, fixed at startup"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class TierProfile:
    failure_probability: float  # Probability of a failed request (0-1)
    min_delay_ms: int  # Inclusive
    max_delay_ms: int  # Exclusive


TIER_PROFILES: Dict[QualityTier, TierProfile] = {
    QualityTier.HIGH: TierProfile(
        failure_probability=0.01,
        min_delay_ms=500,
        max_delay_ms=2000,
    ),
    QualityTier.MEDIUM: TierProfile(
        failure_probability=0.02,
        min_delay_ms=2000,
        max_delay_ms=8000,
    ),
    QualityTier.LOW: TierProfile(
        failure_probability=0.05,
        min_delay_ms=5000,
        max_delay_ms=15000,
    ),
}


@dataclass(frozen=True)
class Decision:
    """Verdict for a single simulated request"""
    will_fail: bool
    delay_ms: int


class SimulationPolicy(ABC):
    """Decides the outcome and latency of a simulated request"""

    @abstractmethod
    def decide(self, tier: QualityTier) -> Decision:
        """Return the verdict for one request under the given tier."""


class RandomSimulationPolicy(SimulationPolicy):
    """Draws outcomes from the tier profiles.

    Every call makes an independent Bernoulli draw for failure and an
    independent uniform integer draw for the delay. The generator is private
    to the instance and guarded by a lock, so one policy may be shared between
    threads.
    """

    def __init__(self, seed: Optional[int] = None,
                 profiles: Optional[Dict[QualityTier, TierProfile]] = None):
        self._rng = random.Random(seed)
        self._lock = threading.Lock()
        self.profiles = profiles or TIER_PROFILES

    def should_fail(self, tier: QualityTier) -> bool:
        profile = self.profiles[tier]
        with self._lock:
            return self._rng.random() < profile.failure_probability

    def simulate_delay(self, tier: QualityTier) -> int:
        """Delay in milliseconds, in [min_delay_ms, max_delay_ms)"""
        profile = self.profiles[tier]
        with self._lock:
            return self._rng.randrange(profile.min_delay_ms, profile.max_delay_ms)

    def decide(self, tier: QualityTier) -> Decision:
        return Decision(
            will_fail=self.should_fail(tier),
            delay_ms=self.simulate_delay(tier),
        )
