"""
Subscriptions
=============

Single-flight multiplexing of decoded frames to observers.

For every distinct in-flight RequestKey there is at most one live
Subscription, owning at most one running FrameSource task. Every frame the
source produces is stored as ``latest_frame`` and broadcast to all current
observers in registration order. A failure is converged into a FetchFailed,
recorded in the FailureRegistry and broadcast once.

Lifecycle:
    acquire(key)        -> existing live Subscription, or a new one whose
                           fetch starts immediately (unless the key has
                           already failed, in which case no fetch is issued)
    add_observer(...)   -> registers and replays latest frame / error
    remove_observer(...) -> removing the last observer cancels the fetch and
                           drops the Subscription from its pool

Design Rules:
    - Broadcasts iterate over a snapshot; observers removed mid-broadcast
      are skipped, never crash the loop
    - Results arriving after close are discarded without touching any
      live state (no notification, no FailureRegistry write)
    - All bookkeeping runs on the event loop thread
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from crossfade_image.cache.failures import FailureRegistry
from crossfade_image.errors import CrossfadeImageError, FetchFailed
from crossfade_image.models.request import RequestKey
from crossfade_image.source.frame import Frame
from crossfade_image.source.frame_source import FrameSource


logger = logging.getLogger(__name__)


FrameObserver = Callable[[Frame], None]
ErrorObserver = Callable[[FetchFailed], None]


class SubscriptionPoolMetrics:
    """Metrics for SubscriptionPool observability."""

    __slots__ = (
        "fetches_started",
        "fetches_failed",
        "frames_delivered",
        "short_circuits",
        "late_results_discarded",
    )

    def __init__(self) -> None:
        self.fetches_started: int = 0
        self.fetches_failed: int = 0
        self.frames_delivered: int = 0
        self.short_circuits: int = 0
        self.late_results_discarded: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "fetches_started": self.fetches_started,
            "fetches_failed": self.fetches_failed,
            "frames_delivered": self.frames_delivered,
            "short_circuits": self.short_circuits,
            "late_results_discarded": self.late_results_discarded,
        }


class _Observer:
    __slots__ = ("on_frame", "on_error")

    def __init__(self, on_frame: FrameObserver, on_error: Optional[ErrorObserver]) -> None:
        self.on_frame = on_frame
        self.on_error = on_error


class Subscription:
    """
    Shared frame stream for one RequestKey.

    Do not construct directly; use ``SubscriptionPool.acquire``.

    Attributes:
        key: The RequestKey this subscription resolves
        latest_frame: Most recent frame produced, if any
        error: The failure signal, once the source has failed
    """

    def __init__(self, key: RequestKey, pool: "SubscriptionPool") -> None:
        self.key = key
        self.latest_frame: Optional[Frame] = None
        self.error: Optional[FetchFailed] = None

        self._pool = pool
        self._observers: List[_Observer] = []
        self._task: Optional[asyncio.Task] = None
        self._closed: bool = False

    @property
    def active(self) -> bool:
        """Whether this subscription is still live in its pool."""
        return not self._closed

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    @property
    def loading(self) -> bool:
        """Whether the fetch task is still running."""
        return self._task is not None and not self._task.done()

    def add_observer(
        self,
        on_frame: FrameObserver,
        on_error: Optional[ErrorObserver] = None,
    ) -> None:
        """
        Register an observer.

        If a frame has already arrived it is replayed to ``on_frame``
        synchronously; likewise a recorded failure is replayed to
        ``on_error``. Replay goes through the same exception guard as
        a broadcast, so a raising observer stays registered and can still
        be removed.

        Args:
            on_frame: Called with every produced Frame
            on_error: Called once with the FetchFailed signal

        Raises:
            RuntimeError: If the subscription was already closed
        """
        if self._closed:
            raise RuntimeError(f"Subscription for {self.key!r} is closed")

        observer = _Observer(on_frame, on_error)
        self._observers.append(observer)
        logger.debug(f"Observer added to {self.key!r} ({len(self._observers)} total)")

        if self.latest_frame is not None:
            self._call(on_frame, self.latest_frame)
        if self.error is not None and on_error is not None and observer in self._observers:
            self._call(on_error, self.error)

    def remove_observer(self, on_frame: FrameObserver) -> bool:
        """
        Unregister the observer registered with ``on_frame``.

        Removing the last observer closes the subscription.

        Returns:
            True if an observer was removed
        """
        for observer in self._observers:
            if observer.on_frame == on_frame:
                self._observers.remove(observer)
                break
        else:
            return False

        logger.debug(f"Observer removed from {self.key!r} ({len(self._observers)} left)")
        if not self._observers:
            self.close()
        return True

    def close(self) -> None:
        """Cancel any in-flight fetch and drop this subscription from the pool."""
        if self._closed:
            return
        self._closed = True
        self._observers.clear()

        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug(f"Cancelled in-flight fetch for {self.key!r}")

        self._pool._discard(self)

    def _start(self, source: FrameSource, failures: FailureRegistry) -> None:
        if failures.has_failed(self.key):
            self.error = FetchFailed(self.key, memoized=True)
            self._pool.metrics.short_circuits += 1
            logger.info(f"Skipping fetch for previously failed {self.key!r}")
            return

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(source, failures))
        self._pool.metrics.fetches_started += 1

    async def _run(self, source: FrameSource, failures: FailureRegistry) -> None:
        def on_failure(key: RequestKey, error: CrossfadeImageError) -> None:
            if not self._closed:
                failures.mark_failed(key)

        try:
            async for frame in source.load(self.key, on_failure=on_failure):
                if self._closed:
                    self._discard_late("frame")
                    return
                self._deliver_frame(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._closed:
                self._discard_late("failure")
                return
            if not isinstance(e, CrossfadeImageError):
                logger.error(f"Unexpected error loading {self.key!r}: {e!r}")
                failures.mark_failed(self.key)
            self._pool.metrics.fetches_failed += 1
            self._deliver_error(FetchFailed(self.key, cause=e))

    def _discard_late(self, what: str) -> None:
        self._pool.metrics.late_results_discarded += 1
        logger.debug(f"Discarding late {what} for closed subscription {self.key!r}")

    def _deliver_frame(self, frame: Frame) -> None:
        self.latest_frame = frame
        self._pool.metrics.frames_delivered += 1
        for observer in list(self._observers):
            if observer not in self._observers:
                continue
            self._call(observer.on_frame, frame)

    def _deliver_error(self, error: FetchFailed) -> None:
        self.error = error
        for observer in list(self._observers):
            if observer not in self._observers or observer.on_error is None:
                continue
            self._call(observer.on_error, error)

    def _call(self, callback: Callable, value: object) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception(f"Observer of {self.key!r} raised during broadcast")

    def __repr__(self) -> str:
        return (
            f"Subscription({self.key!r}, observers={len(self._observers)}, "
            f"has_frame={self.latest_frame is not None}, "
            f"has_error={self.error is not None}, active={self.active})"
        )


class SubscriptionPool:
    """
    Registry of live subscriptions, one per in-flight key.

    Attributes:
        source: FrameSource used to start fetches
        failures: Process-wide FailureRegistry
        metrics: Operational metrics

    Example:
        pool = SubscriptionPool(source, failures)

        sub = pool.acquire(key)
        sub.add_observer(on_frame, on_error)
        ...
        sub.remove_observer(on_frame)
    """

    def __init__(self, source: FrameSource, failures: FailureRegistry) -> None:
        self.source = source
        self.failures = failures
        self.metrics = SubscriptionPoolMetrics()
        self._live: Dict[RequestKey, Subscription] = {}

    def acquire(self, key: RequestKey) -> Subscription:
        """
        Return the live subscription for ``key``, creating it if needed.

        A new subscription starts its fetch immediately unless the key is
        in the FailureRegistry. Must be called from a running event loop.

        Args:
            key: Identity of the image to resolve

        Returns:
            Live Subscription for ``key``

        Raises:
            RuntimeError: If a fetch must start and no event loop is running;
                nothing is left registered for ``key``
        """
        subscription = self._live.get(key)
        if subscription is not None and subscription.active:
            return subscription

        subscription = Subscription(key, self)
        self._live[key] = subscription
        try:
            subscription._start(self.source, self.failures)
        except Exception:
            subscription.close()
            raise
        return subscription

    def get(self, key: RequestKey) -> Optional[Subscription]:
        """Return the live subscription for ``key`` without creating one."""
        return self._live.get(key)

    def close_all(self) -> int:
        """
        Close every live subscription.

        Returns:
            Number of subscriptions closed
        """
        subscriptions = list(self._live.values())
        for subscription in subscriptions:
            subscription.close()
        return len(subscriptions)

    def _discard(self, subscription: Subscription) -> None:
        if self._live.get(subscription.key) is subscription:
            del self._live[subscription.key]

    def __len__(self) -> int:
        return len(self._live)

    def __contains__(self, key: object) -> bool:
        return key in self._live
