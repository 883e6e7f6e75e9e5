"""Messaging: Redis pub/sub for collection change notifications.

Lets several console processes wake each other's live subscriptions.
"""

from liftmosque_admin.infrastructure.messaging.redis_pubsub import (
    CollectionChangeEvent,
    CollectionChangePublisher,
    CollectionChangeSubscriber,
    run_change_relay,
)

__all__ = [
    "CollectionChangeEvent",
    "CollectionChangePublisher",
    "CollectionChangeSubscriber",
    "run_change_relay",
]
