"""
Realtime event feed for "record inserted" notifications.

Supports an in-memory feed for tests/local runs and a Redis pub/sub
implementation for production.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)

Callback = Callable[[dict], None]


class Subscription:
    """Handle for one registered listener; closing it stops delivery."""

    def __init__(self, channel: str, release: Callable[[], None]):
        self.channel = channel
        self._release = release
        self._lock = threading.Lock()
        self.closed = False

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
        self._release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class EventFeed(Protocol):
    """Minimal publish/subscribe interface for insert notifications."""

    def publish(self, channel: str, payload: dict) -> None:
        ...

    def subscribe(self, channel: str, callback: Callback) -> Subscription:
        ...


@contextmanager
def open_subscription(
    feed: EventFeed, channel: str, callback: Callback
) -> Iterator[Subscription]:
    """Listen on ``channel`` for the duration of the block."""
    subscription = feed.subscribe(channel, callback)
    try:
        yield subscription
    finally:
        subscription.close()


@dataclass
class InMemoryEventFeed:
    """Process-local feed that delivers synchronously to every listener."""

    listeners: dict[str, list[Callback]] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def publish(self, channel: str, payload: dict) -> None:
        with self._lock:
            callbacks = list(self.listeners.get(channel, ()))
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                logger.exception("Listener on %s failed", channel)

    def subscribe(self, channel: str, callback: Callback) -> Subscription:
        with self._lock:
            self.listeners.setdefault(channel, []).append(callback)

        def release() -> None:
            with self._lock:
                callbacks = self.listeners.get(channel, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self.listeners.pop(channel, None)

        return Subscription(channel, release)

    def listener_count(self, channel: str) -> int:
        with self._lock:
            return len(self.listeners.get(channel, ()))


@dataclass
class RedisEventFeed:
    """Redis pub/sub feed; each subscription listens on its own thread."""

    url: str
    poll_interval: float = 0.1

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def publish(self, channel: str, payload: dict) -> None:
        message = json.dumps(payload, default=str)
        try:
            self.client.publish(channel, message)
        except redis_exceptions.ConnectionError:
            # Managed Redis drops idle connections; reconnect for the next insert.
            logger.warning("Lost Redis connection while publishing to %s", channel)
            self.client = redis.Redis.from_url(self.url)
        except redis_exceptions.RedisError:
            logger.exception("Failed to publish to %s", channel)

    def subscribe(self, channel: str, callback: Callback) -> Subscription:
        pubsub = self.client.pubsub(ignore_subscribe_messages=True)

        def handle(message: dict) -> None:
            try:
                payload = json.loads(message["data"])
            except (TypeError, ValueError):
                logger.warning("Dropping malformed message on %s", channel)
                return
            callback(payload)

        pubsub.subscribe(**{channel: handle})
        worker = pubsub.run_in_thread(sleep_time=self.poll_interval, daemon=True)

        def release() -> None:
            worker.stop()
            pubsub.close()

        return Subscription(channel, release)
