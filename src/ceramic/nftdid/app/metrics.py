"""
Metrics for the did:nft resolver.

Resolution outcomes and HTTP driver traffic are reported through a small
MetricsClient interface so the resolver does not depend on a particular
backend. Two backends exist:

- TelegrafCompatibilityClient: Forwards to an aio-statsd TelegrafStatsdClient
- NoOpMetricsClient: Discards everything, used by default and in tests

Metric names emitted by this package:
- nftdid.resolve.count: One per resolution, tagged with outcome and content type
- nftdid.resolve.time: Resolution duration in seconds
- nftdid.server.request.count / .time / .exception: HTTP driver middleware
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from aio_statsd import TelegrafStatsdClient

logger = logging.getLogger(__name__)

Number = Union[int, float]


class MetricsClient(ABC):
    """Backend-agnostic counter and timer reporting."""

    @abstractmethod
    def increment(
        self, name: str, value: Number = 1, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        """Increment a counter."""

    @abstractmethod
    def timer(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a duration in seconds."""

    async def connect(self) -> None:
        """Open any connection the backend needs."""

    @abstractmethod
    async def close(self) -> None:
        """Flush and release the backend."""


class TelegrafCompatibilityClient(MetricsClient):
    """MetricsClient delegating to an aio-statsd TelegrafStatsdClient."""

    def __init__(self, telegraf_client: TelegrafStatsdClient):
        self.client = telegraf_client

    def increment(
        self, name: str, value: Number = 1, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        self.client.increment(name, value, tag_dict=tag_dict or {})

    def timer(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
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
    """MetricsClient that records nothing."""

    def increment(
        self, name: str, value: Number = 1, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        pass

    def timer(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        pass

    async def close(self) -> None:
        pass


def create_metrics_client(
    backend: str,
    host: str = "localhost",
    port: int = 8125,
    telegraf_client: Optional[TelegrafStatsdClient] = None,
    debug: bool = False,
) -> MetricsClient:
    """
    Create the metrics client for a backend name.

    Args:
        backend: 'telegraf' or 'none'
        host: Telegraf/StatsD host
        port: Telegraf/StatsD port
        telegraf_client: Pre-configured TelegrafStatsdClient to wrap
        debug: Enable aio-statsd debug output

    Returns:
        MetricsClient: Client for the requested backend

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = backend.lower()

    if backend == "telegraf":
        if telegraf_client is None:
            telegraf_client = TelegrafStatsdClient(host=host, port=port, debug=debug)
        return TelegrafCompatibilityClient(telegraf_client)

    if backend == "none":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    raise ValueError(
        f"Invalid metrics backend: {backend}. Supported backends: 'telegraf', 'none'"
    )
