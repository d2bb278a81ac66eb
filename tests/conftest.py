"""Global test configuration and fixtures."""
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from oracle_node.engine import OracleNode
from oracle_node.metrics import NodeMetrics
from oracle_node.policy import QualityTier

from test_utils import FakeClock, ScriptedPolicy


@pytest.fixture
def node_id():
    return "test-node-1"


@pytest.fixture
def metrics(node_id):
    """Metrics bound to a fresh registry."""
    return NodeMetrics(node_id)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_node(node_id, metrics, clock):
    """Factory for a node driven by a policy double and the fake clock."""
    def _make(decisions=None, quality=QualityTier.HIGH, policy=None):
        return OracleNode(
            node_id,
            quality,
            metrics,
            policy=policy or ScriptedPolicy(decisions or []),
            clock=clock,
            sleep=clock.sleep,
        )
    return _make
