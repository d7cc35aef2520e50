#!/usr/bin/env python3
"""
Snapshot Cache

Keeps the fee-matched classification snapshot per wallet so repeated summary
requests do not refetch and reclassify. Callers inject the cache; the in-memory
implementation expires entries after an explicit TTL.
"""

import copy
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ..core.models import ClassificationResult
from .registry import normalize_address

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class SnapshotCache(Protocol):
    """Per-wallet cache of classification snapshots."""

    def get(self, wallet_address: str) -> ClassificationResult | None: ...

    def put(self, wallet_address: str, snapshot: ClassificationResult) -> None: ...

    def clear(self, wallet_address: str | None = None) -> None: ...


@dataclass
class _Entry:
    snapshot: ClassificationResult
    stored_at: float


class TTLCache:
    """
    In-memory snapshot cache with time-based expiry.

    Snapshots are deep-copied on the way in and out, so callers can mutate the
    transactions they receive without corrupting the cache.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime; 0 disables caching
            clock: Time source in seconds
        """
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, wallet_address: str) -> ClassificationResult | None:
        """Return a fresh snapshot, or None when missing or expired."""
        key = normalize_address(wallet_address)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock() - entry.stored_at >= self.ttl_seconds:
                del self._entries[key]
                logger.debug("Snapshot for %s expired", key)
                return None
            return copy.deepcopy(entry.snapshot)

    def put(self, wallet_address: str, snapshot: ClassificationResult) -> None:
        """Store a snapshot for a wallet."""
        key = normalize_address(wallet_address)
        with self._lock:
            self._entries[key] = _Entry(snapshot=copy.deepcopy(snapshot), stored_at=self.clock())

    def clear(self, wallet_address: str | None = None) -> None:
        """Invalidate one wallet's snapshot, or all of them."""
        with self._lock:
            if wallet_address is None:
                self._entries.clear()
            else:
                self._entries.pop(normalize_address(wallet_address), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
