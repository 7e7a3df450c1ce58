"""Time-bounded cache of resolved avatar service locations.

Entries expire lazily: nothing sweeps the cache, a stale entry is simply
treated as a miss and overwritten by the next resolution. Fallback results are
stored exactly like discovered ones.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional

from social.graze.avatars.resolve.protocol import ProtocolClass


class CacheKey(NamedTuple):
    protocol_class: ProtocolClass
    domain: str


@dataclass(frozen=True)
class CacheEntry:
    """A resolved host or host:port and the clock time it was resolved at."""

    target: str
    resolved_at: float


class ResolutionCache:
    """
    In-memory map of CacheKey to CacheEntry.

    One instance is owned by each FederationResolver. Access is serialized with
    an asyncio lock held only for the map operation itself, never across DNS
    queries.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: CacheKey) -> Optional[CacheEntry]:
        async with self._lock:
            return self._entries.get(key)

    async def put(self, key: CacheKey, entry: CacheEntry) -> None:
        async with self._lock:
            self._entries[key] = entry

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @staticmethod
    def is_valid(entry: CacheEntry, now: float, ttl: float) -> bool:
        """An entry is usable while its age is at most ttl seconds."""
        return now - entry.resolved_at <= ttl
