#!/usr/bin/env python3
"""
Unit tests for the handoff event stream.

Opens the SSE endpoint directly and reads its body iterator, so a test can
mutate the session between events:
- updates after submissions, completion and reset
- heartbeats while idle
- unsubscribing on disconnect or when the session disappears
"""

import asyncio
import json
import unittest
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.handoff import HandoffStateMachine, PartyRole
from database.models import HandoffSession
from notification import HandoffEventBridge
from tests import (
    FakeClock,
    add_found_item,
    add_lost_item,
    make_session_factory,
    make_test_engine,
)
from web.backend.dependencies import Caller
from web.backend.routers.handoff import handoff_events
from web.backend.services import HandoffService

OWNER = Caller(user_id="owner-1")
ADMIN = Caller(user_id="admin-1", role="ADMIN")


@pytest.mark.db
class TestHandoffEventStream(unittest.IsolatedAsyncioTestCase):
    """Tests for the live stream of one party's view."""

    def setUp(self):
        self.engine = make_test_engine()
        self.session_factory = make_session_factory(self.engine)
        self.clock = FakeClock()
        self.bridge = HandoffEventBridge()
        self.machine = HandoffStateMachine(clock=self.clock)

        with self.session_factory() as db:
            add_lost_item(db, item_id="lost-1", user_id="owner-1", status="MATCHED")
            add_found_item(db, item_id="found-1", status="MATCHED")
            view = HandoffService(db, self.machine, self.bridge).create("lost-1", "found-1", ADMIN)
        self.session_id = view.id

    def tearDown(self):
        self.bridge.close()
        self.engine.dispose()

    def codes(self):
        with self.session_factory() as db:
            row = db.get(HandoffSession, self.session_id)
            return row.owner_code, row.counterpart_code

    def submit(self, caller, role, code):
        with self.session_factory() as db:
            return HandoffService(db, self.machine, self.bridge).submit(self.session_id, caller, role, code)

    def reset(self):
        with self.session_factory() as db:
            return HandoffService(db, self.machine, self.bridge).reset(self.session_id, ADMIN)

    def complete(self):
        owner_code, counterpart_code = self.codes()
        self.submit(OWNER, PartyRole.OWNER, counterpart_code)
        self.submit(ADMIN, PartyRole.COUNTERPART, owner_code)

    async def open_stream(self, caller=OWNER):
        self.request = MagicMock()
        self.request.is_disconnected = AsyncMock(return_value=False)

        response = await handoff_events(
            self.session_id,
            self.request,
            caller=caller,
            machine=self.machine,
            bridge=self.bridge,
            session_factory=self.session_factory,
        )
        self.stream = response.body_iterator
        self.addAsyncCleanup(self.stream.aclose)

    async def next_event(self):
        chunk = await asyncio.wait_for(self.stream.__anext__(), timeout=5)
        self.assertTrue(chunk.startswith("data: "))
        return json.loads(chunk[len("data: "):])

    async def test_updates_follow_submissions_completion_and_reset(self):
        await self.open_stream()
        owner_code, counterpart_code = self.codes()

        init = await self.next_event()
        self.assertEqual(init['type'], "init")
        self.assertEqual(init['data']['status'], "ACTIVE")
        self.assertEqual(init['data']['my_code'], owner_code)

        self.submit(OWNER, PartyRole.OWNER, counterpart_code)
        update = await self.next_event()
        self.assertEqual(update['type'], "update")
        self.assertTrue(update['data']['owner_verified_counterpart'])

        self.submit(ADMIN, PartyRole.COUNTERPART, owner_code)
        update = await self.next_event()
        self.assertEqual(update['data']['status'], "COMPLETED")

        # Completion does not close the stream; a reset is still delivered
        self.assertEqual(self.bridge.subscriber_count(self.session_id), 1)
        self.reset()
        update = await self.next_event()
        new_owner_code, _ = self.codes()
        self.assertEqual(update['data']['status'], "ACTIVE")
        self.assertEqual(update['data']['my_code'], new_owner_code)
        self.assertFalse(update['data']['owner_verified_counterpart'])

    async def test_completed_session_stays_subscribed(self):
        self.complete()
        await self.open_stream()

        init = await self.next_event()
        self.assertEqual(init['data']['status'], "COMPLETED")
        self.assertEqual(self.bridge.subscriber_count(self.session_id), 1)

        self.reset()
        update = await self.next_event()
        self.assertEqual(update['type'], "update")
        self.assertEqual(update['data']['status'], "ACTIVE")

    async def test_counterpart_stream_shows_counterpart_code(self):
        await self.open_stream(caller=ADMIN)
        _, counterpart_code = self.codes()

        init = await self.next_event()

        self.assertEqual(init['data']['role'], "COUNTERPART")
        self.assertEqual(init['data']['my_code'], counterpart_code)

    async def test_heartbeat_while_idle(self):
        await self.open_stream()
        await self.next_event()

        self.assertEqual(await self.next_event(), {"type": "heartbeat"})
        self.assertEqual(self.bridge.subscriber_count(self.session_id), 1)

    async def test_burst_of_changes_is_one_update(self):
        await self.open_stream()
        await self.next_event()

        self.bridge.publish(self.session_id)
        self.bridge.publish(self.session_id)
        self.bridge.publish(self.session_id)

        self.assertEqual((await self.next_event())['type'], "update")
        self.assertEqual(await self.next_event(), {"type": "heartbeat"})

    async def test_disconnect_unsubscribes(self):
        await self.open_stream()
        await self.next_event()
        self.assertEqual(self.bridge.subscriber_count(self.session_id), 1)

        self.request.is_disconnected.return_value = True

        with self.assertRaises(StopAsyncIteration):
            await self.stream.__anext__()
        self.assertEqual(self.bridge.subscriber_count(self.session_id), 0)

    async def test_deleted_session_ends_stream(self):
        await self.open_stream()
        await self.next_event()

        with self.session_factory() as db:
            db.delete(db.get(HandoffSession, self.session_id))
            db.commit()
        self.bridge.publish(self.session_id)

        with self.assertRaises(StopAsyncIteration):
            await asyncio.wait_for(self.stream.__anext__(), timeout=5)
        self.assertEqual(self.bridge.subscriber_count(self.session_id), 0)


if __name__ == '__main__':
    unittest.main()
