"""
Unit Tests for Metrics Abstraction Layer

Test Coverage:
- MetricsClient interface implementations
- Backend selection via factory function
- Error handling when aio-statsd is unavailable
"""

import pytest
from unittest.mock import Mock, patch, AsyncMock

from social.graze.avatars.metrics import (
    MetricsClient,
    TelegrafCompatibilityClient,
    NoOpMetricsClient,
    create_metrics_client,
)


class TestMetricsClientInterface:
    """Test the abstract MetricsClient interface."""

    def test_interface_is_abstract(self):
        """MetricsClient should be abstract and not instantiable."""
        with pytest.raises(TypeError):
            MetricsClient()


class TestNoOpMetricsClient:
    """Test the NoOpMetricsClient implementation."""

    @pytest.fixture
    def noop_client(self):
        return NoOpMetricsClient()

    def test_noop_calls(self, noop_client):
        """NoOp operations should not raise exceptions."""
        noop_client.increment("avatars.resolve.cache_hit", 1, {"protocol": "plain"})
        noop_client.increment("avatars.resolve.cache_hit")
        noop_client.gauge("avatars.cache.size", 3)
        noop_client.timer("avatars.discovery.time", 0.012)

    @pytest.mark.asyncio
    async def test_noop_connect_and_close(self, noop_client):
        await noop_client.connect()
        await noop_client.close()


class TestTelegrafCompatibilityClient:
    """Test the TelegrafCompatibilityClient wrapper."""

    @pytest.fixture
    def mock_telegraf_client(self):
        mock = Mock()
        mock.connect = AsyncMock()
        mock.close = AsyncMock()
        return mock

    @pytest.fixture
    def telegraf_client(self, mock_telegraf_client):
        return TelegrafCompatibilityClient(mock_telegraf_client)

    def test_telegraf_increment(self, telegraf_client, mock_telegraf_client):
        telegraf_client.increment("avatars.resolve.fallback", 1, {"protocol": "secure"})

        mock_telegraf_client.increment.assert_called_once_with(
            "avatars.resolve.fallback", 1, tag_dict={"protocol": "secure"}
        )

    def test_telegraf_increment_no_tags(self, telegraf_client, mock_telegraf_client):
        telegraf_client.increment("avatars.resolve.cache_miss")

        mock_telegraf_client.increment.assert_called_once_with(
            "avatars.resolve.cache_miss", 1, tag_dict={}
        )

    def test_telegraf_timer(self, telegraf_client, mock_telegraf_client):
        telegraf_client.timer("avatars.discovery.time", 0.25, {"outcome": "ok"})

        mock_telegraf_client.timer.assert_called_once_with(
            "avatars.discovery.time", 0.25, tag_dict={"outcome": "ok"}
        )

    def test_telegraf_gauge(self, telegraf_client, mock_telegraf_client):
        telegraf_client.gauge("avatars.cache.size", 12)

        mock_telegraf_client.gauge.assert_called_once_with(
            "avatars.cache.size", 12, tag_dict={}
        )

    @pytest.mark.asyncio
    async def test_telegraf_connect(self, telegraf_client, mock_telegraf_client):
        await telegraf_client.connect()
        mock_telegraf_client.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_telegraf_close(self, telegraf_client, mock_telegraf_client):
        await telegraf_client.close()
        mock_telegraf_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_telegraf_close_error_is_logged(self, telegraf_client, mock_telegraf_client):
        mock_telegraf_client.close.side_effect = OSError("socket gone")
        await telegraf_client.close()

    def test_telegraf_unavailable(self):
        with patch("social.graze.avatars.metrics.TELEGRAF_AVAILABLE", False):
            with pytest.raises(ImportError, match="TelegrafStatsdClient not available"):
                TelegrafCompatibilityClient(Mock())


class TestCreateMetricsClient:
    """Test backend selection."""

    def test_none_backend(self):
        assert isinstance(create_metrics_client("none"), NoOpMetricsClient)

    def test_backend_is_case_insensitive(self):
        assert isinstance(create_metrics_client("NONE"), NoOpMetricsClient)

    def test_telegraf_with_existing_client(self):
        existing = Mock()
        client = create_metrics_client("telegraf", telegraf_client=existing)
        assert isinstance(client, TelegrafCompatibilityClient)
        assert client.client is existing

    def test_telegraf_builds_client(self):
        with patch("social.graze.avatars.metrics.TelegrafStatsdClient") as mock_class:
            client = create_metrics_client("telegraf", host="statsd", port=9125)

        mock_class.assert_called_once_with(host="statsd", port=9125, debug=False)
        assert client.client is mock_class.return_value

    def test_telegraf_unavailable(self):
        with patch("social.graze.avatars.metrics.TELEGRAF_AVAILABLE", False):
            with pytest.raises(ValueError, match="aio-statsd package required"):
                create_metrics_client("telegraf")

    def test_invalid_backend(self):
        with pytest.raises(ValueError, match="Invalid metrics backend"):
            create_metrics_client("prometheus")
