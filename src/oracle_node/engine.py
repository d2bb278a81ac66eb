"""Simulated oracle request handling."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .metrics import ETH_BALANCE, LINK_BALANCE, REPUTATION_SCORE, NodeMetrics
from .policy import QualityTier, RandomSimulationPolicy, SimulationPolicy

logger = logging.getLogger(__name__)

REPUTATION_PENALTY = 0.1  # Score lost per failed request
LINK_REWARD = 0.1  # LINK earned per successful request
GAS_COST = 0.0001  # ETH spent per request, whatever the outcome


@dataclass
class RequestOutcome:
    """Result of one simulated request"""
    success: bool
    delay_ms: int
    duration: float  # Wall-clock seconds from start to completion


class OracleNode:
    """A single simulated oracle node.

    The node is the only writer of its metrics. Each call to
    ``handle_request`` fabricates one oracle request and folds its outcome
    into the counters and gauges.
    """

    def __init__(
        self,
        node_id: str,
        quality: QualityTier,
        metrics: NodeMetrics,
        policy: Optional[SimulationPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.node_id = node_id
        self.quality = quality
        self.metrics = metrics
        self.policy = policy or RandomSimulationPolicy()
        self._clock = clock
        self._sleep = sleep

    async def handle_request(self) -> RequestOutcome:
        """Simulate one oracle request and record its outcome"""
        start = self._clock()

        # Counts attempts, not completions
        self.metrics.requests_total.inc()

        decision = self.policy.decide(self.quality)

        # Simulate the external API call
        await self._sleep(decision.delay_ms / 1000.0)

        if decision.will_fail:
            self.metrics.requests_failed.inc()
            current_score = self.metrics.value(REPUTATION_SCORE)
            self.metrics.reputation_score.set(max(current_score - REPUTATION_PENALTY, 0.0))
            logger.warning(f"Node {self.node_id} failed to process request")
        else:
            self.metrics.requests_success.inc()
            current_link = self.metrics.value(LINK_BALANCE)
            self.metrics.link_balance.set(current_link + LINK_REWARD)

        duration = self._clock() - start
        self.metrics.request_duration.observe(duration)

        current_eth = self.metrics.value(ETH_BALANCE)
        self.metrics.eth_balance.set(max(current_eth - GAS_COST, 0.0))

        if not decision.will_fail:
            logger.debug(f"Node {self.node_id} served request in {duration:.3f}s")

        return RequestOutcome(
            success=not decision.will_fail,
            delay_ms=decision.delay_ms,
            duration=duration,
        )
