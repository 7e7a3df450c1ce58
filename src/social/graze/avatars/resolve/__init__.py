"""
Federation Resolution

This package resolves domains to the base URL of their avatar service.

Key Components:
- srv.py: SRV lookup through aiodns and outcome classification
- weighted.py: RFC 2782 priority/weight record selection
- cache.py: Lazily-expiring cache of resolved locations
- federation.py: FederationResolver, tying discovery, selection and caching together
- __main__.py: CLI interface for resolution

The resolution flow follows these steps:
1. Return the cached location if it is younger than the cache TTL
2. Query _{service}._tcp.{domain} SRV records
3. On success, select one record from the top priority tier by weight
4. When no record is published, use the protocol's fallback host
5. Cache the location (timeouts and other failures are raised, never cached)
"""

from social.graze.avatars.resolve.federation import (
    FederationResolver,
    get_default_resolver,
    resolve_base_url,
)
from social.graze.avatars.resolve.protocol import ProtocolClass

__all__ = [
    "FederationResolver",
    "ProtocolClass",
    "get_default_resolver",
    "resolve_base_url",
]
