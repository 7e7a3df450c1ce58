"""
Metrics Abstraction Layer for the Avatar Federation Resolver

This module provides a backend-agnostic metrics interface so the resolver can
report cache effectiveness and DNS discovery latency without depending on a
particular metrics system.

Key Components:
- MetricsClient: Abstract interface for all metrics operations
- TelegrafCompatibilityClient: Wrapper for aio_statsd's TelegrafStatsdClient
- NoOpMetricsClient: No-operation client for disabled metrics
- create_metrics_client: Factory function for backend selection

Metrics emitted by the resolver:
- avatars.resolve.cache_hit / avatars.resolve.cache_miss (counters)
- avatars.resolve.fallback (counter, per protocol class)
- avatars.resolve.error (counter, tagged with the discovery outcome)
- avatars.discovery.time (timer, seconds per SRV lookup)
- avatars.cache.size (gauge, cache entries after each write)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

try:
    from aio_statsd import TelegrafStatsdClient
    TELEGRAF_AVAILABLE = True
except ImportError:
    TELEGRAF_AVAILABLE = False

logger = logging.getLogger(__name__)


class MetricsClient(ABC):
    """
    Abstract metrics client interface.

    Implementations support counters, gauges and timers. Tags follow the
    StatsD-style tag dictionary convention.
    """

    @abstractmethod
    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Increment a counter metric by the specified value.

        Args:
            name: Metric name (e.g., 'avatars.resolve.cache_hit')
            value: Amount to increment by (default: 1)
            tag_dict: Optional tags for metric dimensions
        """
        pass

    @abstractmethod
    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Set a gauge metric to the specified value.

        Args:
            name: Metric name (e.g., 'avatars.cache.size')
            value: Current value to set
            tag_dict: Optional tags for metric dimensions
        """
        pass

    @abstractmethod
    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record a timing/duration measurement in seconds.

        Args:
            name: Metric name (e.g., 'avatars.discovery.time')
            value: Duration in seconds
            tag_dict: Optional tags for metric dimensions
        """
        pass

    async def connect(self) -> None:
        """Open any network resources the backend needs. No-op by default."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the metrics client and flush any pending metrics."""
        pass


class TelegrafCompatibilityClient(MetricsClient):
    """
    MetricsClient wrapper around an aio_statsd TelegrafStatsdClient.
    """

    def __init__(self, telegraf_client: Any):
        """
        Initialize with an existing TelegrafStatsdClient instance.

        Args:
            telegraf_client: Configured TelegrafStatsdClient instance
        """
        if not TELEGRAF_AVAILABLE:
            raise ImportError(
                "TelegrafStatsdClient not available. Install with: pip install aio-statsd"
            )

        self.client = telegraf_client

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.increment(name, value, tag_dict=tag_dict or {})

    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.gauge(name, value, tag_dict=tag_dict or {})

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
        """Close underlying TelegrafStatsdClient."""
        try:
            if hasattr(self.client, "close"):
                await self.client.close()
        except Exception as e:
            logger.warning(f"Error closing Telegraf client: {e}")


class NoOpMetricsClient(MetricsClient):
    """
    Metrics client that records nothing.

    The resolver uses this when no client is supplied, so tests and library
    callers never need a metrics backend.
    """

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: Union[int, float],
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
    telegraf_client: Optional[Any] = None,
    debug: bool = False,
) -> MetricsClient:
    """
    Create the metrics client for a backend name.

    Args:
        backend: Backend type ('telegraf', 'none')
        host: Telegraf/StatsD host
        port: Telegraf/StatsD port
        telegraf_client: Pre-configured TelegrafStatsdClient instance
        debug: Enable debug logging

    Returns:
        MetricsClient: Configured metrics client instance

    Raises:
        ValueError: If backend type is invalid or required dependencies missing
    """
    backend = backend.lower()

    if debug:
        logger.debug(f"Creating metrics client with backend: {backend}")

    if backend == "telegraf":
        if telegraf_client:
            return TelegrafCompatibilityClient(telegraf_client)

        if not TELEGRAF_AVAILABLE:
            logger.error("Telegraf backend requested but aio-statsd package not available")
            raise ValueError(
                "aio-statsd package required for 'telegraf' backend. "
                "Install with: pip install aio-statsd"
            )

        return TelegrafCompatibilityClient(
            TelegrafStatsdClient(host=host, port=port, debug=debug)
        )

    elif backend == "none":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    else:
        raise ValueError(
            f"Invalid metrics backend: {backend}. "
            f"Supported backends: 'telegraf', 'none'"
        )
