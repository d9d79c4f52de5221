#!/usr/bin/env python3
"""
Handoff Event Bridge - publish/subscribe for handoff session changes.

Publishers announce that a session's persisted state changed; subscribers
are called with no payload and must re-fetch the session themselves.
Delivery is best effort with no buffering or replay: a subscriber only hears
about publishes that happen while it is subscribed, so a new subscriber
fetches an initial snapshot on its own.

Usage:
    bridge = HandoffEventBridge()
    unsubscribe = bridge.subscribe(session_id, on_change)
    bridge.publish(session_id)
    unsubscribe()
"""

import logging
from collections import defaultdict
from threading import Lock
from typing import Callable, Dict, List, Optional

from notification.brokers import EventBroker, LocalBroker

logger = logging.getLogger(__name__)

Handler = Callable[[], None]
Unsubscribe = Callable[[], None]


class _Subscription:
    """One registered handler. Identity is what unsubscribe removes."""
    __slots__ = ('session_id', 'handler')

    def __init__(self, session_id: str, handler: Handler):
        self.session_id = session_id
        self.handler = handler


class HandoffEventBridge:
    """
    Session-scoped pub/sub over an EventBroker.

    With the default LocalBroker, only subscribers in this process are
    notified. Pass a RedisBroker to reach subscribers in other instances.
    """

    def __init__(self, broker: Optional[EventBroker] = None):
        self._subscriptions: Dict[str, List[_Subscription]] = defaultdict(list)
        self._lock = Lock()
        self._closed = False
        self._broker = broker or LocalBroker()
        self._broker.start(self.dispatch)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, session_id: str) -> None:
        """Announce that session `session_id` changed."""
        if self._closed:
            return
        try:
            self._broker.publish(str(session_id))
        except Exception as e:
            logger.warning(f"Failed to publish handoff update for {session_id}: {e}")

    def subscribe(self, session_id: str, handler: Handler) -> Unsubscribe:
        """
        Call `handler` on every publish for `session_id`.

        Returns:
            An unsubscribe function. Calling it more than once, or after the
            bridge is closed, does nothing.
        """
        subscription = _Subscription(str(session_id), handler)

        with self._lock:
            if not self._closed:
                self._subscriptions[subscription.session_id].append(subscription)

        def unsubscribe() -> None:
            self._remove(subscription)

        return unsubscribe

    def dispatch(self, session_id: str) -> None:
        """Invoke every local handler for `session_id`. Called by the broker."""
        with self._lock:
            targets = list(self._subscriptions.get(str(session_id), ()))

        for subscription in targets:
            try:
                subscription.handler()
            except Exception as e:
                logger.warning(f"Handoff subscriber for {session_id} failed: {e}", exc_info=True)

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(str(session_id), ()))

    def close(self) -> None:
        """Drop all subscribers and stop the broker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._subscriptions.clear()
        self._broker.close()
        logger.info("Handoff event bridge closed")

    def _remove(self, subscription: _Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.session_id)
            if not subscriptions:
                return
            for index, existing in enumerate(subscriptions):
                if existing is subscription:
                    del subscriptions[index]
                    break
            if not subscriptions:
                del self._subscriptions[subscription.session_id]
