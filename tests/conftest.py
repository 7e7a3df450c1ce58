"""
Shared test configuration and fixtures for avatar federation tests.

Provides a controllable clock, fake aiodns SRV answers and a resolver wired
to a mocked DNS resolver so no test touches the network.
"""

import random
from unittest.mock import AsyncMock

import pytest

from social.graze.avatars.config import Settings
from social.graze.avatars.resolve.cache import ResolutionCache
from social.graze.avatars.resolve.federation import FederationResolver
from social.graze.avatars.resolve.srv import DiscoveryClient
from tests.test_helpers import FakeClock


@pytest.fixture
def settings() -> Settings:
    """Default settings, pinned so environment variables cannot leak in."""
    return Settings(
        use_https=False,
        fallback_host="cdn.libravatar.org",
        secure_fallback_host="seccdn.libravatar.org",
        service_base="avatars",
        secure_service_base="avatars-sec",
        cache_ttl=86400,
        dns_timeout=5.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dns_resolver() -> AsyncMock:
    """Mocked aiodns.DNSResolver; set query.return_value or query.side_effect."""
    resolver = AsyncMock()
    resolver.query.return_value = []
    return resolver


@pytest.fixture
def discovery(dns_resolver, settings) -> DiscoveryClient:
    return DiscoveryClient(timeout=settings.dns_timeout, resolver=dns_resolver)


@pytest.fixture
def federation_resolver(settings, discovery, clock) -> FederationResolver:
    return FederationResolver(
        settings=settings,
        discovery=discovery,
        cache=ResolutionCache(),
        clock=clock,
        rng=random.Random(2782),
    )
