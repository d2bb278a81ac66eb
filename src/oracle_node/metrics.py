"""Prometheus metrics for a simulated oracle node.

Every node owns a private CollectorRegistry, so several nodes (or several
test cases) can live in the same process without clashing on metric names.
All series carry a ``node_id`` label bound once at construction.
"""
import logging
from typing import Dict, Optional

from prometheus_client import (
    generate_latest,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

from .errors import ExportError, MetricsRegistrationError

logger = logging.getLogger(__name__)

# Buckets: 1s, 2s, 5s, 10s, 20s, 30s, 60s
REQUEST_DURATION_BUCKETS = (1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0)

INITIAL_REPUTATION_SCORE = 100.0
INITIAL_LINK_BALANCE = 500.0

# Sample names as they appear in the exposition output
REQUESTS_TOTAL = 'oracle_requests_total'
REQUESTS_SUCCESS = 'oracle_requests_success_total'
REQUESTS_FAILED = 'oracle_requests_failed_total'
REQUEST_DURATION = 'oracle_request_duration_seconds'
REPUTATION_SCORE = 'oracle_reputation_score'
ETH_BALANCE = 'oracle_eth_balance'
LINK_BALANCE = 'oracle_link_balance'

SNAPSHOT_SAMPLES = (
    REQUESTS_TOTAL,
    REQUESTS_SUCCESS,
    REQUESTS_FAILED,
    REPUTATION_SCORE,
    ETH_BALANCE,
    LINK_BALANCE,
)


class NodeMetrics:
    """Counters, gauges and latency histogram of one oracle node"""

    def __init__(self, node_id: str, registry: Optional[CollectorRegistry] = None):
        """Create and register all metric families.

        Args:
            node_id: Value of the ``node_id`` label on every series
            registry: Registry to register into. A fresh one is created when
                omitted.

        Raises:
            MetricsRegistrationError: if any family cannot be registered,
                e.g. because the registry already holds one with that name
        """
        self.node_id = node_id
        self.registry = registry if registry is not None else CollectorRegistry()

        try:
            # Request counters
            self.requests_total = Counter(
                REQUESTS_TOTAL,
                'Total number of oracle requests',
                ['node_id'],
                registry=self.registry
            ).labels(node_id=node_id)

            self.requests_success = Counter(
                REQUESTS_SUCCESS,
                'Successful oracle requests',
                ['node_id'],
                registry=self.registry
            ).labels(node_id=node_id)

            self.requests_failed = Counter(
                REQUESTS_FAILED,
                'Failed oracle requests',
                ['node_id'],
                registry=self.registry
            ).labels(node_id=node_id)

            # Latency histogram
            self.request_duration = Histogram(
                REQUEST_DURATION,
                'Oracle request duration in seconds',
                ['node_id'],
                buckets=REQUEST_DURATION_BUCKETS,
                registry=self.registry
            ).labels(node_id=node_id)

            # Node state gauges
            self.reputation_score = Gauge(
                REPUTATION_SCORE,
                'Node reputation score (0-100)',
                ['node_id'],
                registry=self.registry
            ).labels(node_id=node_id)

            self.eth_balance = Gauge(
                ETH_BALANCE,
                'Node ETH balance',
                ['node_id'],
                registry=self.registry
            ).labels(node_id=node_id)

            self.link_balance = Gauge(
                LINK_BALANCE,
                'Node LINK token balance',
                ['node_id'],
                registry=self.registry
            ).labels(node_id=node_id)
        except ValueError as e:
            logger.error(f"Error registering metrics for node {node_id}: {e}")
            raise MetricsRegistrationError(str(e)) from e

        self.reputation_score.set(INITIAL_REPUTATION_SCORE)
        self.link_balance.set(INITIAL_LINK_BALANCE)

        logger.debug(f"Metrics initialized for node {node_id}")

    def value(self, sample_name: str, **labels) -> float:
        """Current value of a sample of this node, 0.0 if it has none yet."""
        labels['node_id'] = self.node_id
        value = self.registry.get_sample_value(sample_name, labels)
        return value if value is not None else 0.0

    def snapshot(self) -> Dict[str, float]:
        """Current scalar values keyed by sample name.

        Values are read one at a time and need not be mutually consistent.
        """
        values = {name: self.value(name) for name in SNAPSHOT_SAMPLES}
        values[REQUEST_DURATION + '_count'] = self.value(REQUEST_DURATION + '_count')
        values[REQUEST_DURATION + '_sum'] = self.value(REQUEST_DURATION + '_sum')
        return values

    def export(self) -> str:
        """Render the registry in the Prometheus text exposition format.

        Raises:
            ExportError: if collecting or encoding the metric families fails
        """
        try:
            return generate_latest(self.registry).decode('utf-8')
        except Exception as e:
            raise ExportError(str(e)) from e
