"""
Cache Module
============

Shared state across CrossfadeImage instances.

    - FailureRegistry: Process-wide memo of failed request identities
    - Subscription / SubscriptionPool: Single-flight frame multiplexing
"""

from crossfade_image.cache.failures import FailureRegistry
from crossfade_image.cache.subscription import (
    Subscription,
    SubscriptionPool,
    SubscriptionPoolMetrics,
)


__all__ = [
    "FailureRegistry",
    "Subscription",
    "SubscriptionPool",
    "SubscriptionPoolMetrics",
]
