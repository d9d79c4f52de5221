#!/usr/bin/env python3
"""
Event Brokers - transport behind the handoff event bridge.

LocalBroker delivers within the current process only. RedisBroker fans a
publish out to every process subscribed to the same Redis channel, which is
what a multi-instance deployment needs; the bridge API is the same either way.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from redis import Redis

logger = logging.getLogger(__name__)

Dispatch = Callable[[str], None]

DEFAULT_CHANNEL = "handoff:update"


class EventBroker(ABC):
    """Moves session ids from publishers to the local dispatcher."""

    @abstractmethod
    def start(self, dispatch: Dispatch) -> None:
        """Begin delivering published ids to `dispatch`."""
        pass

    @abstractmethod
    def publish(self, session_id: str) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class LocalBroker(EventBroker):
    """Synchronous in-process delivery. No fan-out across instances."""

    def __init__(self):
        self._dispatch: Optional[Dispatch] = None

    def start(self, dispatch: Dispatch) -> None:
        self._dispatch = dispatch

    def publish(self, session_id: str) -> None:
        if self._dispatch is not None:
            self._dispatch(session_id)

    def close(self) -> None:
        self._dispatch = None


class RedisBroker(EventBroker):
    """
    Redis pub/sub transport.

    Every instance subscribes to one channel; a background thread owned by
    redis-py hands incoming ids to the local dispatcher.
    """

    def __init__(
        self,
        redis_url: str = 'redis://localhost:6379/0',
        channel: str = DEFAULT_CHANNEL,
        client: Optional[Redis] = None,
        poll_interval: float = 0.1,
    ):
        self.redis_url = redis_url
        self.channel = channel
        self.poll_interval = poll_interval
        self._redis = client
        self._pubsub = None
        self._thread = None
        self._dispatch: Optional[Dispatch] = None

    def _get_redis(self) -> Redis:
        """Get Redis connection (lazy init)."""
        if self._redis is None:
            self._redis = Redis.from_url(self.redis_url)
        return self._redis

    def start(self, dispatch: Dispatch) -> None:
        self._dispatch = dispatch
        self._pubsub = self._get_redis().pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(**{self.channel: self._on_message})
        self._thread = self._pubsub.run_in_thread(sleep_time=self.poll_interval, daemon=True)
        logger.info(f"Listening for handoff events on Redis channel '{self.channel}'")

    def publish(self, session_id: str) -> None:
        self._get_redis().publish(self.channel, session_id)

    def close(self) -> None:
        self._dispatch = None
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None

    def _on_message(self, message) -> None:
        dispatch = self._dispatch
        if dispatch is None:
            return
        data = message.get('data')
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        if data:
            dispatch(str(data))
