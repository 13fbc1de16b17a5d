"""
Metrics for the Vanity Username Service

A small backend-agnostic metrics interface so that handlers and middleware
record counters and timings without caring whether a Telegraf agent is
deployed next to the service.

Key Components:
- MetricsClient: Abstract interface for all metrics operations
- TelegrafMetricsClient: Delegates to aio_statsd's TelegrafStatsdClient
- NoOpMetricsClient: Discards everything, used in development and tests
- create_metrics_client: Factory selecting a backend from settings
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from aio_statsd import TelegrafStatsdClient

logger = logging.getLogger(__name__)


class MetricsClient(ABC):
    """
    Abstract metrics client.

    Tags are passed as a StatsD-style dictionary and forwarded to the backend
    unchanged.
    """

    @abstractmethod
    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Increment a counter, e.g. 'vanity.claim.stage'."""

    @abstractmethod
    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a duration in seconds, e.g. 'vanity.server.request.time'."""

    async def connect(self) -> None:
        """Open any network resources the backend needs."""

    @abstractmethod
    async def close(self) -> None:
        """Flush pending metrics and release network resources."""


class TelegrafMetricsClient(MetricsClient):
    """Metrics client backed by a TelegrafStatsdClient."""

    def __init__(self, telegraf_client: TelegrafStatsdClient):
        self.client = telegraf_client

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.increment(name, value, tag_dict=tag_dict or {})

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.timer(name, value, tag_dict=tag_dict or {})

    async def connect(self) -> None:
        await self.client.connect()

    async def close(self) -> None:
        try:
            await self.client.close()
        except Exception as e:
            logger.warning(f"Error closing Telegraf client: {e}")


class NoOpMetricsClient(MetricsClient):
    """Metrics client that records nothing."""

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    async def close(self) -> None:
        pass


def create_metrics_client(
    backend: str,
    host: str = "localhost",
    port: int = 8125,
    debug: bool = False,
) -> MetricsClient:
    """
    Create the metrics client for a backend name.

    Args:
        backend: Backend type ('telegraf' or 'none')
        host: Telegraf/StatsD host
        port: Telegraf/StatsD port
        debug: Enable debug logging in the StatsD client

    Returns:
        MetricsClient: Configured, not yet connected, metrics client

    Raises:
        ValueError: If the backend type is unknown
    """
    backend = backend.lower()

    if backend == "telegraf":
        return TelegrafMetricsClient(
            TelegrafStatsdClient(host=host, port=port, debug=debug)
        )

    if backend == "none":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    raise ValueError(
        f"Invalid metrics backend: {backend}. Supported backends: 'telegraf', 'none'"
    )
