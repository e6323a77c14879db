"""
Event publishing for live dashboards.

Services receive an EventPublisher at construction and call
``publish(topic, payload)``. Publishing is fire-and-forget: a slow or broken
subscriber path is logged and never raised to the caller.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Tuple

from fastapi.encoders import jsonable_encoder

from bus_tracking.app.core.config import settings
from bus_tracking.app.core.reliability import CircuitBreaker

logger = logging.getLogger("bus_tracking.events")


class EventTopic:
    """Topics consumed by the live map and alert panels."""
    LOCATION_UPDATE = "location:update"
    TRIP_UPDATE = "trip:update"
    ALERT_NEW = "alert:new"


class TripUpdateType:
    """Value of ``type`` in trip:update payloads."""
    STARTED = "started"
    ENDED = "ended"
    LOCATION = "location"


class EventPublisher:
    """
    Base publisher.

    Subclasses implement ``_send``; ``publish`` encodes the payload, bounds
    the call with a timeout and swallows every failure.
    """

    def __init__(self, timeout_seconds: float = None):
        if timeout_seconds is None:
            timeout_seconds = settings.event_publish_timeout_seconds
        self.timeout_seconds = timeout_seconds

    async def publish(self, topic: str, payload: Any) -> bool:
        """
        Publish an event.

        Returns:
            True if the event was handed to the transport, False otherwise
        """
        try:
            encoded = jsonable_encoder(payload)
            await asyncio.wait_for(self._send(topic, encoded), timeout=self.timeout_seconds)
            return True
        except asyncio.TimeoutError:
            logger.warning("Publishing %s timed out after %ss", topic, self.timeout_seconds)
        except Exception:
            logger.exception("Publishing %s failed", topic)
        return False

    async def _send(self, topic: str, payload: Any) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class RedisEventPublisher(EventPublisher):
    """Publishes JSON messages on Redis channels named ``<prefix><topic>``."""

    def __init__(
        self,
        redis_client,
        channel_prefix: str = None,
        timeout_seconds: float = None,
        breaker: CircuitBreaker = None
    ):
        super().__init__(timeout_seconds)
        self.redis = redis_client
        self.channel_prefix = settings.event_channel_prefix if channel_prefix is None else channel_prefix
        self.breaker = breaker or CircuitBreaker(failure_threshold=3, reset_timeout=30)

    def channel_for(self, topic: str) -> str:
        return f"{self.channel_prefix}{topic}"

    async def _send(self, topic: str, payload: Any) -> None:
        await self.breaker.call(self.redis.publish, self.channel_for(topic), json.dumps(payload))

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryEventPublisher(EventPublisher):
    """
    In-process fan-out to asyncio queues.

    Used for single-process deployments and tests. Every published event is
    also kept in ``events``. A subscriber whose queue is full loses the event.
    """

    def __init__(self, max_queue_size: int = 1000, timeout_seconds: float = None):
        super().__init__(timeout_seconds)
        self.max_queue_size = max_queue_size
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self._subscribers: List[asyncio.Queue] = []

    def subscribe(self) -> asyncio.Queue:
        queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.events]

    def payloads(self, topic: str) -> List[Dict[str, Any]]:
        return [payload for t, payload in self.events if t == topic]

    async def _send(self, topic: str, payload: Any) -> None:
        self.events.append((topic, payload))
        for queue in list(self._subscribers):
            try:
                queue.put_nowait((topic, payload))
            except asyncio.QueueFull:
                logger.warning("Subscriber queue full, dropping %s event", topic)


def create_event_publisher() -> EventPublisher:
    """Build the publisher selected by settings.event_backend."""
    if settings.event_backend == "memory":
        return InMemoryEventPublisher()

    from bus_tracking.app.core.redis_client import redis_client
    return RedisEventPublisher(redis_client)
