"""Unit tests for the fixed-interval request loop."""
import asyncio
import time

import pytest

from oracle_node.engine import OracleNode
from oracle_node.metrics import REQUESTS_TOTAL
from oracle_node.policy import QualityTier
from oracle_node.scheduler import DEFAULT_REQUEST_INTERVAL, RequestScheduler, SchedulerState

from test_utils import RepeatingPolicy, succeed


class RecordingNode:
    """Stands in for OracleNode and records when each tick runs"""

    def __init__(self, duration=0.0):
        self.node_id = "recording-node"
        self.duration = duration
        self.started = []
        self.finished = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.tick_started = asyncio.Event()

    async def handle_request(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.append(time.monotonic())
        self.tick_started.set()
        await asyncio.sleep(self.duration)
        self.finished.append(time.monotonic())
        self.in_flight -= 1


class TestRequestScheduler:
    def test_defaults(self):
        scheduler = RequestScheduler(RecordingNode())
        assert scheduler.interval == DEFAULT_REQUEST_INTERVAL == 5.0
        assert scheduler.state == SchedulerState.IDLE
        assert scheduler.ticks_completed == 0
        assert not scheduler.is_running

    @pytest.mark.parametrize("interval", [0, -1.0])
    def test_rejects_non_positive_interval(self, interval):
        with pytest.raises(ValueError):
            RequestScheduler(RecordingNode(), interval=interval)

    @pytest.mark.asyncio
    async def test_runs_fixed_number_of_ticks(self):
        node = RecordingNode()
        scheduler = RequestScheduler(node, interval=0.01)

        await scheduler.run(max_ticks=3)

        assert len(node.finished) == 3
        assert scheduler.ticks_completed == 3
        assert scheduler.state == SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_first_tick_fires_immediately(self):
        node = RecordingNode()
        scheduler = RequestScheduler(node, interval=10.0)
        begin = time.monotonic()

        await scheduler.run(max_ticks=1)

        assert node.started[0] - begin < 0.5

    @pytest.mark.asyncio
    async def test_schedule_does_not_drift_with_request_duration(self):
        """Tick k starts near k * interval, not k * (interval + duration)."""
        node = RecordingNode(duration=0.12)
        scheduler = RequestScheduler(node, interval=0.2)

        await scheduler.run(max_ticks=3)

        offsets = [t - node.started[0] for t in node.started]
        assert offsets[1] == pytest.approx(0.2, abs=0.08)
        assert offsets[2] == pytest.approx(0.4, abs=0.08)

    @pytest.mark.asyncio
    async def test_overrunning_ticks_never_overlap(self):
        node = RecordingNode(duration=0.05)
        scheduler = RequestScheduler(node, interval=0.01)

        await scheduler.run(max_ticks=4)

        assert node.max_in_flight == 1
        for previous_end, next_start in zip(node.finished, node.started[1:]):
            assert next_start >= previous_end

    @pytest.mark.asyncio
    async def test_stop_waits_for_tick_in_progress(self):
        node = RecordingNode(duration=0.1)
        scheduler = RequestScheduler(node, interval=0.01)

        scheduler.start()
        await node.tick_started.wait()
        assert scheduler.state == SchedulerState.RUNNING

        await scheduler.stop()

        assert len(node.started) == len(node.finished) == 1
        assert scheduler.ticks_completed == 1
        assert scheduler.state == SchedulerState.STOPPED
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_stop_while_idle_returns_promptly(self):
        node = RecordingNode()
        scheduler = RequestScheduler(node, interval=30.0)

        scheduler.start()
        await node.tick_started.wait()
        await asyncio.sleep(0.01)
        assert scheduler.state == SchedulerState.IDLE

        begin = time.monotonic()
        await scheduler.stop()

        assert time.monotonic() - begin < 1.0
        assert scheduler.ticks_completed == 1

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self):
        scheduler = RequestScheduler(RecordingNode(), interval=30.0)
        scheduler.start()
        try:
            with pytest.raises(RuntimeError):
                scheduler.start()
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_drives_oracle_node(self, node_id, metrics):
        node = OracleNode(node_id, QualityTier.HIGH, metrics, policy=RepeatingPolicy(succeed(1)))
        scheduler = RequestScheduler(node, interval=0.01)

        await scheduler.run(max_ticks=5)

        assert metrics.value(REQUESTS_TOTAL) == 5
