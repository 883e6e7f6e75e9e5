"""Redis Pub/Sub for cross-process collection change notifications.

Every write made through a console instance is published on
``collection_changes:<collection>``. Other instances relay those messages to
their local ChangeNotifier so their watchers re-run queries immediately
instead of waiting for the next poll. Redis is optional: when it is
unreachable, publishing is skipped and watchers fall back to polling.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import asdict, dataclass
from typing import Any

import redis.asyncio as redis

from liftmosque_admin.core.config import Settings
from liftmosque_admin.infrastructure.firebase.watch import ChangeNotifier
from liftmosque_admin.shared.utils.datetime import utc_now
from liftmosque_admin.shared.utils.generators import generate_document_id

logger = logging.getLogger(__name__)


@dataclass
class CollectionChangeEvent:
    """Change notification payload for Redis."""

    collection: str
    document_id: str
    origin: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON publish."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CollectionChangeEvent:
        """Deserialize from Redis message."""
        return cls(
            collection=data["collection"],
            document_id=data["document_id"],
            origin=data["origin"],
            timestamp=data["timestamp"],
        )


class _RedisPubSubBase:
    """Shared Redis connection and channel logic for change pub/sub."""

    CHANNEL_PREFIX = "collection_changes"

    def __init__(
        self,
        settings: Settings,
        redis_client: redis.Redis | None = None,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = settings
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on console startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis pub/sub connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis pub/sub connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on console shutdown."""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis pub/sub disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None

    def _get_channel(self, collection: str) -> str:
        """Channel name for collection."""
        return f"{self.CHANNEL_PREFIX}:{collection}"


class CollectionChangePublisher(_RedisPubSubBase):
    """Publishes change events to the per-collection channel."""

    def __init__(
        self,
        settings: Settings,
        redis_client: redis.Redis | None = None,
        origin: str | None = None,
    ) -> None:
        super().__init__(settings, redis_client)
        self.origin = origin or generate_document_id()

    async def publish(self, collection: str, document_id: str) -> bool:
        """Publish a change to collection.

        Returns:
            True if published, False if Redis unavailable or the publish failed.
        """
        if not self.is_available() or self.redis is None:
            logger.debug("Redis not available, skipping publish")
            return False
        event = CollectionChangeEvent(
            collection=collection,
            document_id=document_id,
            origin=self.origin,
            timestamp=utc_now().isoformat(),
        )
        channel = self._get_channel(collection)
        try:
            await self.redis.publish(channel, json.dumps(event.to_dict()))
            logger.debug("Published change to %s: %s", channel, document_id)
        except (redis.RedisError, OSError):
            logger.exception("Failed to publish collection change")
            return False
        else:
            return True


class CollectionChangeSubscriber(_RedisPubSubBase):
    """Subscribes to change events of every collection.

    listen() uses a locally-scoped PubSub that is closed in finally, so it
    is safe to run more than one listener.
    """

    async def listen(self) -> AsyncIterator[CollectionChangeEvent]:
        """Yield change events as they arrive (nothing if Redis is unavailable)."""
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available for subscription")
            return
        pattern = f"{self.CHANNEL_PREFIX}:*"
        pubsub = self.redis.pubsub()
        try:
            await pubsub.psubscribe(pattern)
            logger.info("Subscribed to %s", pattern)
            async for message in pubsub.listen():
                if message["type"] != "pmessage":
                    continue
                try:
                    data = json.loads(message["data"])
                    yield CollectionChangeEvent.from_dict(data)
                except (json.JSONDecodeError, KeyError, TypeError):
                    logger.exception("Failed to parse collection change message")
        finally:
            await pubsub.punsubscribe(pattern)
            await pubsub.aclose()
            logger.info("Unsubscribed from %s", pattern)


async def run_change_relay(
    subscriber: CollectionChangeSubscriber,
    notifier: ChangeNotifier,
    origin: str,
) -> None:
    """Wake local watchers for every change published by another process.

    Run as a background task while the console is open; cancelling the task
    stops the relay. Events from origin (this process) are ignored because
    local writes already notified the watchers.
    """
    try:
        async for event in subscriber.listen():
            if event.origin == origin:
                continue
            logger.debug(
                "Remote change on %s/%s", event.collection, event.document_id
            )
            notifier.notify(event.collection)
    except asyncio.CancelledError:
        logger.info("Collection change relay cancelled")
        raise
    except redis.RedisError:
        logger.exception("Collection change relay stopped; watchers fall back to polling")
