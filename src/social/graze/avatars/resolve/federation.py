"""Federated avatar service resolution.

Resolves a domain to the base URL of its avatar service using the
_avatars._tcp / _avatars-sec._tcp SRV records, falling back to the configured
Libravatar hosts when a domain publishes none. Results, including fallbacks,
are cached per (protocol class, domain) for the configured TTL.
"""

import logging
import random
import time
from typing import Callable, Optional

from social.graze.avatars.config import Settings, load_settings, validate_settings
from social.graze.avatars.errors import (
    DiscoveryError,
    MalformedDiscoveryResponse,
    TransientDiscoveryError,
)
from social.graze.avatars.metrics import MetricsClient, NoOpMetricsClient
from social.graze.avatars.resolve.cache import CacheEntry, CacheKey, ResolutionCache
from social.graze.avatars.resolve.protocol import ProtocolClass
from social.graze.avatars.resolve.srv import (
    DiscoveryClient,
    DiscoveryOutcome,
    ServiceRecord,
)
from social.graze.avatars.resolve.weighted import select_record

logger = logging.getLogger(__name__)


def normalize_domain(domain: str) -> str:
    return domain.strip().rstrip(".").lower()


def format_target(record: ServiceRecord, protocol_class: ProtocolClass) -> str:
    """Render a record as host or host:port.

    The port is omitted only when it is the scheme's default port, whether the
    record came from a single-record or a weighted multi-record answer.
    """
    if record.port == protocol_class.default_port:
        return record.target
    return f"{record.target}:{record.port}"


class FederationResolver:
    """
    Resolves domains to avatar service base URLs.

    Each resolver owns its cache. Settings are read-only after construction;
    the clock and random source can be injected for tests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        discovery: Optional[DiscoveryClient] = None,
        cache: Optional[ResolutionCache] = None,
        metrics_client: Optional[MetricsClient] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = (
            validate_settings(settings) if settings is not None else load_settings()
        )
        self.discovery = (
            discovery
            if discovery is not None
            else DiscoveryClient(timeout=self.settings.dns_timeout)
        )
        self.cache = cache if cache is not None else ResolutionCache()
        self.metrics_client = metrics_client or NoOpMetricsClient()
        self.clock = clock
        self.rng = rng

    @property
    def default_protocol_class(self) -> ProtocolClass:
        return ProtocolClass.secure if self.settings.use_https else ProtocolClass.plain

    def service_name(self, protocol_class: ProtocolClass) -> str:
        if protocol_class == ProtocolClass.secure:
            return self.settings.secure_service_base
        return self.settings.service_base

    def fallback_host(self, protocol_class: ProtocolClass) -> str:
        if protocol_class == ProtocolClass.secure:
            return self.settings.secure_fallback_host
        return self.settings.fallback_host

    async def resolve(
        self, domain: str, protocol_class: Optional[ProtocolClass] = None
    ) -> str:
        """
        Resolve the avatar service base URL for a domain.

        Args:
            domain: Domain taken from an email address or OpenID URL
            protocol_class: plain or secure; defaults to the configured use_https

        Returns:
            Base URL of the form scheme://host[:port]

        Raises:
            TransientDiscoveryError: The SRV query timed out
            MalformedDiscoveryResponse: The SRV answer carried no records
            DiscoveryError: The SRV query failed for any other reason
        """
        if protocol_class is None:
            protocol_class = self.default_protocol_class
        key = CacheKey(protocol_class, normalize_domain(domain))
        tags = {"protocol": protocol_class.name}

        entry = await self.cache.get(key)
        if entry is not None and ResolutionCache.is_valid(
            entry, self.clock(), self.settings.cache_ttl
        ):
            logger.debug("Cache hit for %s (%s): %s", key.domain, protocol_class.name, entry.target)
            self.metrics_client.increment("avatars.resolve.cache_hit", 1, tag_dict=tags)
            return f"{protocol_class.scheme}://{entry.target}"

        logger.debug("Cache miss for %s (%s)", key.domain, protocol_class.name)
        self.metrics_client.increment("avatars.resolve.cache_miss", 1, tag_dict=tags)

        service = self.service_name(protocol_class)
        start = time.monotonic()
        result = await self.discovery.lookup(service, key.domain)
        self.metrics_client.timer(
            "avatars.discovery.time",
            time.monotonic() - start,
            tag_dict={**tags, "outcome": result.outcome.name},
        )

        if result.outcome == DiscoveryOutcome.not_found:
            target = self.fallback_host(protocol_class)
            logger.info(
                "No %s service published for %s, using fallback %s",
                service,
                key.domain,
                target,
            )
            self.metrics_client.increment("avatars.resolve.fallback", 1, tag_dict=tags)
        elif result.outcome == DiscoveryOutcome.ok:
            record = select_record(result.records, self.rng)
            target = format_target(record, protocol_class)
            logger.debug(
                "Selected %s:%d (priority=%d weight=%d) for %s",
                record.target,
                record.port,
                record.priority,
                record.weight,
                key.domain,
            )
        else:
            self.metrics_client.increment(
                "avatars.resolve.error",
                1,
                tag_dict={**tags, "outcome": result.outcome.name},
            )
            raise self._discovery_error(service, key.domain, result.outcome, result.error)

        await self.cache.put(key, CacheEntry(target=target, resolved_at=self.clock()))
        self.metrics_client.gauge("avatars.cache.size", len(self.cache))
        return f"{protocol_class.scheme}://{target}"

    def _discovery_error(
        self,
        service: str,
        domain: str,
        outcome: DiscoveryOutcome,
        error: Optional[BaseException],
    ) -> DiscoveryError:
        if outcome == DiscoveryOutcome.timeout:
            exc: DiscoveryError = TransientDiscoveryError(
                f"SRV lookup for {service} on {domain} timed out", service, domain
            )
        elif error is None:
            exc = MalformedDiscoveryResponse(
                f"SRV lookup for {service} on {domain} returned no records",
                service,
                domain,
            )
        else:
            exc = DiscoveryError(
                f"SRV lookup for {service} on {domain} failed: {error}",
                service,
                domain,
            )
        exc.__cause__ = error
        return exc


_default_resolver: Optional[FederationResolver] = None


def get_default_resolver() -> FederationResolver:
    """Return the process-wide resolver, building it from the environment on first use."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = FederationResolver()
    return _default_resolver


async def resolve_base_url(
    domain: str, protocol_class: Optional[ProtocolClass] = None
) -> str:
    """Resolve a domain with the process-wide default resolver."""
    return await get_default_resolver().resolve(domain, protocol_class)
