"""Exception hierarchy for federated avatar resolution.

Resolution failures are classified once at the DNS boundary and surfaced through
these types. A domain that publishes no avatar service is not an error: it
resolves to the fallback host.
"""

from typing import Any, Dict, Optional


class FederationError(Exception):
    """Base exception for all federation resolver errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(FederationError):
    """Resolver settings failed validation at construction time."""

    pass


class DiscoveryError(FederationError):
    """SRV discovery failed for a reason other than a missing record."""

    def __init__(
        self,
        message: str,
        service: str,
        domain: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.service = service
        self.domain = domain


class TransientDiscoveryError(DiscoveryError):
    """SRV query timed out. Never cached; the caller may retry later."""

    pass


class MalformedDiscoveryResponse(DiscoveryError):
    """SRV query reported success but carried no usable records."""

    pass
