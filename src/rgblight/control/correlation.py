"""
Correlation Registry - Matches outgoing color requests to their echoes

Each outstanding request is keyed by the color it asked for. A waiter gets a
one-shot gate that is set when the device echoes that color back. Entries
expire after a fixed TTL; expired entries are swept lazily whenever a new
request is registered and their gates are never set.
"""
import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 30.0


@dataclass
class CorrelationEntry:
    """An outstanding request awaiting its echo"""

    key: str
    deadline: float
    gate: asyncio.Event

    def is_expired(self, now: float) -> bool:
        return self.deadline < now


class CorrelationRegistry:
    """
    Thread-safe map from correlation key to a waitable gate with expiry

    At most one entry exists per key. Registering a key that is already
    outstanding replaces the earlier entry; the earlier gate is abandoned
    and its waiter will run into its own timeout.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the registry

        Args:
            ttl_seconds: Lifetime of an unresolved entry
            clock: Monotonic time source in seconds
        """
        self.ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CorrelationEntry] = {}

        # Statistics
        self.registered_count = 0
        self.resolved_count = 0
        self.expired_count = 0
        self.replaced_count = 0

    def register(self, key: str) -> asyncio.Event:
        """
        Register an outstanding request

        Args:
            key: Correlation key (the requested color token)

        Returns:
            Fresh, unset gate that is set when the key is resolved
        """
        with self._lock:
            now = self._clock()
            self._sweep(now)

            if key in self._entries:
                self.replaced_count += 1
                logger.debug("correlation_entry_replaced", key=key)

            gate = asyncio.Event()
            self._entries[key] = CorrelationEntry(key, now + self.ttl, gate)
            self.registered_count += 1
            return gate

    def resolve(self, key: str) -> bool:
        """
        Resolve an outstanding request, setting its gate

        Args:
            key: Correlation key observed on the echo

        Returns:
            True if the key was outstanding, False otherwise
        """
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return False

            if entry.is_expired(self._clock()):
                self.expired_count += 1
                logger.debug("correlation_entry_expired", key=key)
                return False

            entry.gate.set()
            self.resolved_count += 1
            return True

    def _sweep(self, now: float) -> None:
        """Drop expired entries without setting their gates (lock must be held)"""
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]

        if expired:
            self.expired_count += len(expired)
            logger.debug("correlation_entries_swept", count=len(expired))

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_statistics(self) -> dict:
        """
        Get registry statistics

        Returns:
            Dictionary with registry statistics
        """
        with self._lock:
            outstanding = len(self._entries)

        return {
            "ttl_s": self.ttl,
            "outstanding": outstanding,
            "registered": self.registered_count,
            "resolved": self.resolved_count,
            "expired": self.expired_count,
            "replaced": self.replaced_count,
        }
