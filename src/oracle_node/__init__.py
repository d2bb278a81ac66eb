"""Simulated blockchain oracle node for exercising monitoring pipelines."""

from .policy import QualityTier, Decision, SimulationPolicy, RandomSimulationPolicy
from .metrics import NodeMetrics
from .engine import OracleNode, RequestOutcome
from .scheduler import RequestScheduler, SchedulerState

__all__ = [
    'QualityTier',
    'Decision',
    'SimulationPolicy',
    'RandomSimulationPolicy',
    'NodeMetrics',
    'OracleNode',
    'RequestOutcome',
    'RequestScheduler',
    'SchedulerState',
]

__version__ = '0.1.0'
