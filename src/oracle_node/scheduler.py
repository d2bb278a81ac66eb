"""Fixed-interval driver for the simulated request loop."""
import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

from .engine import OracleNode

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_INTERVAL = 5.0  # seconds


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class RequestScheduler:
    """Runs ``node.handle_request`` once per tick until stopped.

    Tick k is due at ``start + k * interval``, so the schedule does not drift
    with request duration. Ticks never overlap: a tick that overruns its slot
    delays the next one, and overdue ticks then fire back to back until the
    loop has caught up with the schedule.

    A stop request is honoured between ticks only. A tick already in progress
    always completes its full set of metric updates.
    """

    def __init__(
        self,
        node: OracleNode,
        interval: float = DEFAULT_REQUEST_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.node = node
        self.interval = interval
        self._clock = clock
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.state = SchedulerState.IDLE
        self.ticks_completed = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self, max_ticks: Optional[int] = None):
        """Drive the loop in the current task.

        Args:
            max_ticks: Stop after this many ticks. Runs until ``stop`` when None.
        """
        start = self._clock()
        tick = 0
        logger.info(
            f"Request loop for node {self.node.node_id} started "
            f"(interval {self.interval}s)"
        )
        try:
            while not self._stop_event.is_set():
                if max_ticks is not None and tick >= max_ticks:
                    break

                self.state = SchedulerState.RUNNING
                await self.node.handle_request()
                self.ticks_completed += 1
                self.state = SchedulerState.IDLE

                tick += 1
                delay = start + tick * self.interval - self._clock()
                if delay > 0:
                    try:
                        await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                    except asyncio.TimeoutError:
                        pass
        finally:
            self.state = SchedulerState.STOPPED
            logger.info(
                f"Request loop for node {self.node.node_id} stopped "
                f"after {self.ticks_completed} requests"
            )

    def start(self) -> asyncio.Task:
        """Run the loop as a background task"""
        if self.is_running:
            raise RuntimeError("Request loop is already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        """Ask the loop to stop and wait for the current tick to finish"""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
