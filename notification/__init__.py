"""
Notification Module

Session-scoped change events for handoff sessions. A publish carries only
the session id; subscribers re-read the persisted session to learn what
changed.

Usage:
    from notification import HandoffEventBridge, RedisBroker

    # In-process only
    bridge = HandoffEventBridge()

    # Fan out across instances
    bridge = HandoffEventBridge(RedisBroker('redis://localhost:6379/0'))

    unsubscribe = bridge.subscribe(session_id, on_change)
    bridge.publish(session_id)
    unsubscribe()
"""

from notification.brokers import (
    EventBroker,
    LocalBroker,
    RedisBroker,
    DEFAULT_CHANNEL,
)
from notification.bridge import HandoffEventBridge

__all__ = [
    'HandoffEventBridge',
    'EventBroker',
    'LocalBroker',
    'RedisBroker',
    'DEFAULT_CHANNEL',
]
