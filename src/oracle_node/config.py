"""
Configuration settings for the oracle node simulator.

Values come from the environment (optionally seeded from a ``.env`` file) and
are read once at startup.
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, NamedTuple, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .policy import QualityTier
from .scheduler import DEFAULT_REQUEST_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_NODE_ID = 'oracle-node-1'
DEFAULT_QUALITY_TIER = QualityTier.HIGH
DEFAULT_HOST = '0.0.0.0'
DEFAULT_PORT = 9090
DEFAULT_LOG_LEVEL = 'INFO'


class TierSelection(NamedTuple):
    tier: QualityTier
    recognized: bool  # False when the fallback tier was used


def parse_quality_tier(raw: Optional[str]) -> TierSelection:
    """Map a tier selector ("high", "medium", "low") to a QualityTier.

    Matching is case-sensitive. A missing value selects the default silently;
    any other unrecognised value selects the default and logs a warning.
    """
    if raw is None:
        return TierSelection(DEFAULT_QUALITY_TIER, True)

    for tier in QualityTier:
        if tier.value == raw:
            return TierSelection(tier, True)

    logger.warning(
        f"Unknown quality tier {raw!r}, falling back to {DEFAULT_QUALITY_TIER.value!r}"
    )
    return TierSelection(DEFAULT_QUALITY_TIER, False)


@dataclass(frozen=True)
class Settings:
    """Startup configuration of a node"""
    node_id: str = DEFAULT_NODE_ID
    quality_tier: QualityTier = DEFAULT_QUALITY_TIER
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    request_interval: float = DEFAULT_REQUEST_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise ConfigurationError('PORT', raw, 'not an integer')
    if not 0 <= port <= 65535:
        raise ConfigurationError('PORT', raw, 'out of range')
    return port


def _parse_interval(raw: str) -> float:
    try:
        interval = float(raw)
    except ValueError:
        raise ConfigurationError('REQUEST_INTERVAL', raw, 'not a number')
    if interval <= 0:
        raise ConfigurationError('REQUEST_INTERVAL', raw, 'must be positive')
    return interval


def _parse_log_level(raw: str) -> str:
    level = raw.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError('LOG_LEVEL', raw, 'unknown log level')
    return level


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    When ``environ`` is omitted, a ``.env`` file is loaded first and
    ``os.environ`` is used.

    Raises:
        ConfigurationError: if PORT, REQUEST_INTERVAL or LOG_LEVEL is malformed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    return Settings(
        node_id=environ.get('NODE_ID') or DEFAULT_NODE_ID,
        quality_tier=parse_quality_tier(environ.get('QUALITY_TIER')).tier,
        host=environ.get('HOST', DEFAULT_HOST),
        port=_parse_port(environ.get('PORT', str(DEFAULT_PORT))),
        request_interval=_parse_interval(
            environ.get('REQUEST_INTERVAL', str(DEFAULT_REQUEST_INTERVAL))
        ),
        log_level=_parse_log_level(environ.get('LOG_LEVEL', DEFAULT_LOG_LEVEL)),
    )
