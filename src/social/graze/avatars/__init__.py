"""
Avatars - Federated Avatar Service Resolution

This package resolves, for an email or OpenID domain, the avatar service that
domain federates to, following the Libravatar federation protocol: domains
publish _avatars._tcp (plain HTTP) or _avatars-sec._tcp (HTTPS) SRV records, and
domains that publish none are served by the Libravatar CDN.

Key Components:
- resolve: SRV discovery, RFC 2782 weighted selection, caching and fallback
- config: Pydantic settings for fallback hosts, service names and cache TTL
- metrics: Backend-agnostic metrics client
- errors: Exception hierarchy for discovery and configuration failures

Hashing the address and assembling the final image URL are left to callers;
this package returns the base URL (scheme://host[:port]) they build on.
"""
