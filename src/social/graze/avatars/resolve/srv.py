"""DNS SRV discovery for federated avatar services.

Queries _{service}._tcp.{domain} SRV records with aiodns and classifies the
outcome once, so callers branch on DiscoveryOutcome rather than resolver errors.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional

import aiodns
import sentry_sdk
from aiodns import DNSResolver
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset(
    {
        aiodns.error.ARES_ENOTFOUND,
        aiodns.error.ARES_ENODATA,
        aiodns.error.ARES_ENONAME,
    }
)


class ServiceRecord(BaseModel):
    """A single published avatar service endpoint.

    Lower priority values are preferred; weight is the record's share within
    its priority tier.
    """

    target: str
    port: int = Field(ge=0, le=65535)
    priority: int = Field(ge=0, le=65535)
    weight: int = Field(ge=0, le=65535)

    @field_validator("target")
    @classmethod
    def strip_root_label(cls, v: str) -> str:
        return v.rstrip(".")


class DiscoveryOutcome(IntEnum):
    """Classification of an SRV lookup."""

    ok = 1
    not_found = 2
    timeout = 3
    other_error = 4


@dataclass(frozen=True)
class DiscoveryResult:
    """Records returned by an SRV lookup along with its classified outcome.

    For other_error, error holds the resolver exception, or None when the
    answer was empty.
    """

    outcome: DiscoveryOutcome
    records: List[ServiceRecord] = field(default_factory=list)
    error: Optional[BaseException] = None


def srv_query_name(service: str, domain: str, protocol: str = "tcp") -> str:
    return f"_{service}._{protocol}.{domain}"


class DiscoveryClient:
    """Performs SRV lookups and classifies the result.

    The aiodns resolver is created lazily on first use, since it binds to the
    running event loop.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        resolver: Optional[DNSResolver] = None,
    ) -> None:
        self.timeout = timeout
        self._resolver = resolver

    @property
    def resolver(self) -> DNSResolver:
        if self._resolver is None:
            self._resolver = DNSResolver(timeout=self.timeout)
        return self._resolver

    async def lookup(
        self, service: str, domain: str, protocol: str = "tcp"
    ) -> DiscoveryResult:
        """Query the SRV records advertising service for domain.

        Args:
            service: SRV service name, without the leading underscore
            domain: Domain to query
            protocol: Transport label, "tcp" for avatar services

        Returns:
            DiscoveryResult; records keep DNS order when outcome is ok
        """
        name = srv_query_name(service, domain, protocol)
        try:
            results = await asyncio.wait_for(
                self.resolver.query(name, "SRV"), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning("SRV lookup for %s timed out after %ss", name, self.timeout)
            sentry_sdk.capture_exception(e)
            return DiscoveryResult(outcome=DiscoveryOutcome.timeout, error=e)
        except aiodns.error.DNSError as e:
            return self._classify_dns_error(name, e)
        except Exception as e:
            logger.exception("Unexpected error during SRV lookup for %s", name)
            sentry_sdk.capture_exception(e)
            return DiscoveryResult(outcome=DiscoveryOutcome.other_error, error=e)

        records = [
            ServiceRecord(
                target=result.host,
                port=result.port,
                priority=result.priority,
                weight=result.weight,
            )
            for result in results or []
        ]
        if len(records) == 0:
            logger.warning("SRV lookup for %s returned no records", name)
            return DiscoveryResult(outcome=DiscoveryOutcome.other_error)

        # A target of "." means the service is decidedly not available.
        records = [record for record in records if record.target]
        if len(records) == 0:
            logger.debug("SRV records at %s only name the root target", name)
            return DiscoveryResult(outcome=DiscoveryOutcome.not_found)

        logger.debug("SRV lookup for %s returned %d record(s)", name, len(records))
        return DiscoveryResult(outcome=DiscoveryOutcome.ok, records=records)

    def _classify_dns_error(
        self, name: str, error: aiodns.error.DNSError
    ) -> DiscoveryResult:
        code = error.args[0] if error.args else None
        if code in NOT_FOUND_CODES:
            logger.debug("No SRV record published at %s", name)
            return DiscoveryResult(outcome=DiscoveryOutcome.not_found, error=error)
        if code == aiodns.error.ARES_ETIMEOUT:
            logger.warning("SRV lookup for %s timed out: %s", name, error)
            sentry_sdk.capture_exception(error)
            return DiscoveryResult(outcome=DiscoveryOutcome.timeout, error=error)
        logger.warning("SRV lookup for %s failed: %s", name, error)
        sentry_sdk.capture_exception(error)
        return DiscoveryResult(outcome=DiscoveryOutcome.other_error, error=error)
