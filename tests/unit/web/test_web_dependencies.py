#!/usr/bin/env python3
"""
Unit tests for the web dependency providers.
"""

import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from notification import HandoffEventBridge
from web.backend.config import AppConfig, EventsConfig
from web.backend.dependencies import (
    build_event_bridge,
    close_event_bridge,
    get_current_user,
    get_event_bridge,
    require_admin,
)


class TestEventBridgeProvider(unittest.TestCase):
    """Tests for the process-wide bridge lifecycle."""

    def setUp(self):
        close_event_bridge()

    def tearDown(self):
        close_event_bridge()

    def test_same_bridge_until_closed(self):
        first = get_event_bridge()

        self.assertIs(get_event_bridge(), first)

        close_event_bridge()
        second = get_event_bridge()

        self.assertTrue(first.closed)
        self.assertIsNot(second, first)
        self.assertFalse(second.closed)

    def test_closed_bridge_is_replaced(self):
        first = get_event_bridge()
        first.close()

        self.assertIsNot(get_event_bridge(), first)

    def test_memory_backend_builds_local_bridge(self):
        with patch('web.backend.dependencies.RedisBroker') as redis_broker:
            bridge = build_event_bridge()

        self.assertIsInstance(bridge, HandoffEventBridge)
        redis_broker.assert_not_called()
        bridge.close()

    @patch('web.backend.dependencies.RedisBroker')
    @patch('web.backend.dependencies.get_config')
    def test_redis_backend_builds_redis_broker(self, mock_get_config, mock_redis_broker):
        mock_get_config.return_value = AppConfig(
            events=EventsConfig(backend="redis", redis_url="redis://cache:6379/1", channel="hs")
        )
        broker = MagicMock()
        mock_redis_broker.return_value = broker

        bridge = build_event_bridge()

        mock_redis_broker.assert_called_once_with(redis_url="redis://cache:6379/1", channel="hs")
        broker.start.assert_called_once_with(bridge.dispatch)
        bridge.close()
        broker.close.assert_called_once_with()


class TestCallerIdentity(unittest.TestCase):
    """Tests for reading the caller from headers."""

    def test_missing_user_id_is_401(self):
        for user_id in (None, "", "   "):
            with self.assertRaises(HTTPException) as ctx:
                get_current_user(x_user_id=user_id, x_user_role="ADMIN")
            self.assertEqual(ctx.exception.status_code, 401)

    def test_role_defaults_to_user(self):
        self.assertEqual(get_current_user(x_user_id="u-1", x_user_role=None).role, "USER")
        self.assertEqual(get_current_user(x_user_id="u-1", x_user_role="superuser").role, "USER")

    def test_admin_role_is_case_insensitive(self):
        caller = get_current_user(x_user_id=" admin-1 ", x_user_role="admin")

        self.assertEqual(caller.user_id, "admin-1")
        self.assertTrue(caller.is_admin)
        self.assertIs(require_admin(caller), caller)

    def test_require_admin_rejects_users(self):
        with self.assertRaises(HTTPException) as ctx:
            require_admin(get_current_user(x_user_id="u-1", x_user_role="USER"))
        self.assertEqual(ctx.exception.status_code, 403)


if __name__ == '__main__':
    unittest.main()
