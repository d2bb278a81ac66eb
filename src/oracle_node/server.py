"""HTTP surface and process entry point of the oracle node simulator.

Endpoints:
    - GET /health: liveness probe, never touches node state
    - GET /metrics: Prometheus exposition of the node's metrics
    - GET /status: JSON summary of the node and its current metric values
"""
import asyncio
import logging
import signal
import sys
from typing import Optional

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST

from .config import Settings, load_settings
from .engine import OracleNode
from .errors import ConfigurationError, ExportError, MetricsRegistrationError
from .metrics import NodeMetrics
from .policy import SimulationPolicy
from .scheduler import RequestScheduler

logger = logging.getLogger(__name__)

HEALTH_MESSAGE = "The great Oracle node is healthy and ready to serve!"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class OracleNodeServer:
    """aiohttp application exposing a node's health and metrics.

    Handlers only read node state; the scheduler is the sole writer.
    """

    def __init__(self, node: OracleNode, scheduler: Optional[RequestScheduler] = None,
                 host: str = '0.0.0.0', port: int = 9090):
        self.node = node
        self.scheduler = scheduler
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.add_routes([
            web.get('/health', self.health_check),
            web.get('/metrics', self.metrics),
            web.get('/status', self.status),
        ])
        return app

    async def start(self):
        """Bind the listening socket and start serving.

        Raises:
            OSError: if the address cannot be bound
        """
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await self._runner.cleanup()
            self._runner = None
            raise
        logger.info(
            f"The great Oracle node {self.node.node_id} is starting with the blue pill "
            f"on {self.host}:{self.port}"
        )

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info(f"HTTP server for node {self.node.node_id} stopped")

    async def health_check(self, request):
        """Health check endpoint"""
        return web.Response(text=HEALTH_MESSAGE)

    async def metrics(self, request):
        """Expose Prometheus metrics"""
        try:
            body = self.node.metrics.export()
        except ExportError as e:
            logger.error(f"Error generating metrics: {e}")
            return web.Response(
                text=f"Failed to export metrics: {e}",
                status=500
            )
        return web.Response(
            body=body.encode('utf-8'),
            headers={'Content-Type': CONTENT_TYPE_LATEST}
        )

    async def status(self, request):
        """Summary of the node for humans and dashboards"""
        scheduler = self.scheduler
        return web.json_response({
            'node_id': self.node.node_id,
            'quality_tier': self.node.quality.value,
            'scheduler': {
                'state': scheduler.state.value if scheduler else None,
                'interval_seconds': scheduler.interval if scheduler else None,
                'ticks_completed': scheduler.ticks_completed if scheduler else 0,
            },
            'metrics': self.node.metrics.snapshot(),
        })


def configure_logging(level: str = 'INFO'):
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_node(settings: Settings, policy: Optional[SimulationPolicy] = None) -> OracleNode:
    """Create the metrics registry and the node bound to it.

    Raises:
        MetricsRegistrationError: if the metrics cannot be registered
    """
    metrics = NodeMetrics(settings.node_id)
    return OracleNode(settings.node_id, settings.quality_tier, metrics, policy=policy)


async def serve(settings: Settings, shutdown_event: Optional[asyncio.Event] = None):
    """Run the node until ``shutdown_event`` is set or a stop signal arrives"""
    node = build_node(settings)
    scheduler = RequestScheduler(node, interval=settings.request_interval)
    server = OracleNodeServer(node, scheduler, host=settings.host, port=settings.port)

    shutdown_event = shutdown_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            # Windows event loops; KeyboardInterrupt still ends the process
            break

    await server.start()
    scheduler.start()
    logger.info(
        f"Node {node.node_id} running with {node.quality.value} quality tier"
    )
    try:
        await shutdown_event.wait()
        logger.info(f"Shutting down node {node.node_id}")
    finally:
        await scheduler.stop()
        await server.stop()


def main():
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down oracle node")
    except MetricsRegistrationError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Failed to bind {settings.host}:{settings.port}: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
