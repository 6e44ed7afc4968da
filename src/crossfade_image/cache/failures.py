"""
Failure Registry
================

Process-wide memo of request identities that have failed to load.

A failed key is terminal for the lifetime of the registry: every later
acquisition of the same key short-circuits without touching the network.
This is a cache of failures, not of successes.

Design Rules:
    - Insertion is the only mutation in normal operation
    - Membership tests never mutate
    - ``reset`` is the explicit escape hatch for retrying
    - Insert is atomic under a lock; reads see every completed write
"""

import logging
import threading
from typing import Set, Tuple

from crossfade_image.models.request import RequestKey


logger = logging.getLogger(__name__)


class FailureRegistry:
    """
    Set of request identities that have previously failed.

    Created once per process (see ImageEngine) and passed by reference to
    every subscription pool and facade.

    Example:
        failures = FailureRegistry()
        failures.mark_failed(key)
        assert failures.has_failed(key)
    """

    def __init__(self) -> None:
        self._failed: Set[Tuple[str, float]] = set()
        self._lock = threading.Lock()

    def has_failed(self, key: RequestKey) -> bool:
        """Return True if ``key`` has previously failed."""
        return key.identity in self._failed

    def mark_failed(self, key: RequestKey) -> None:
        """
        Record that ``key`` failed. Idempotent.

        Args:
            key: The failed RequestKey
        """
        self._insert((key.url, key.scale))

    def mark_rejected(self, url: str, scale: float = 1.0) -> None:
        """
        Record a request that was rejected before a key could be built.

        Used for empty urls, which never produce a valid RequestKey.
        """
        self._insert((url or "", float(scale)))

    def has_rejected(self, url: str, scale: float = 1.0) -> bool:
        """Return True if a raw ``(url, scale)`` pair was recorded as failed."""
        return (url or "", float(scale)) in self._failed

    def reset(self) -> int:
        """
        Forget every recorded failure.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            cleared = len(self._failed)
            self._failed = set()
        logger.info(f"FailureRegistry reset, cleared {cleared} entries")
        return cleared

    def __len__(self) -> int:
        return len(self._failed)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, RequestKey) and self.has_failed(key)

    def _insert(self, identity: Tuple[str, float]) -> None:
        with self._lock:
            if identity in self._failed:
                return
            self._failed.add(identity)
        logger.warning(f"Marked as failed: url={identity[0]!r}, scale={identity[1]}")
