#!/usr/bin/env python3
"""
Unit tests for the lost-and-found repositories.

Runs against in-memory SQLite so the SQL actually executes:
- ItemRepository: lookups, open-item listing, status transitions
- DeclinedMatchRepository: upsert and exclusion sets in both directions
- HandoffRepository: state round trip, active lookups
- lostfound_uow: commit and rollback
"""

import unittest
from datetime import datetime, timezone

import pytest

from core.handoff import HandoffStateMachine, HandoffStatus, PartyRole
from core.matching import ItemCategory, ItemKind
from database.models import CLAIMED_STATUS, ITEM_STATUSES, MATCHED_STATUS, OPEN_STATUS
from database.repository import LostFoundRepository
from database.repositories import to_item_record, to_handoff_state
from database.uow import lostfound_uow
from tests import make_test_engine, make_session_factory, add_lost_item, add_found_item


@pytest.mark.db
class RepositoryTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = make_test_engine()
        self.session_factory = make_session_factory(self.engine)
        self.db = self.session_factory()
        self.repo = LostFoundRepository(self.db)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()


class TestItemRepository(RepositoryTestCase):
    """Tests for ItemRepository."""

    def test_get_item_by_kind(self):
        lost = add_lost_item(self.db, item_id="lost-a")
        found = add_found_item(self.db, item_id="found-a")

        self.assertIs(self.repo.items.get_item(ItemKind.LOST, "lost-a"), lost)
        self.assertIs(self.repo.items.get_found_item("found-a"), found)
        self.assertIsNone(self.repo.items.get_item(ItemKind.FOUND, "lost-a"))
        self.assertIsNone(self.repo.items.get_lost_item("missing"))

    def test_list_open_items_only_pending(self):
        add_found_item(self.db, item_id="found-open")
        add_found_item(self.db, item_id="found-matched", status="MATCHED")
        add_found_item(self.db, item_id="found-disposed", status="DISPOSED")

        open_ids = [item.id for item in self.repo.items.list_open_items(ItemKind.FOUND)]

        self.assertEqual(open_ids, ["found-open"])

    def test_to_item_record(self):
        lost = add_lost_item(self.db, location=None, description="")

        record = to_item_record(lost)

        self.assertEqual(record.kind, ItemKind.LOST)
        self.assertEqual(record.category, ItemCategory.ELECTRONICS)
        self.assertEqual(record.occurred_on, lost.lost_date)
        self.assertIsNone(record.location)

    def test_mark_matched_links_both_items(self):
        lost = add_lost_item(self.db)
        found = add_found_item(self.db)

        self.repo.items.mark_matched(lost, found)
        self.repo.commit()

        self.assertEqual(lost.status, MATCHED_STATUS)
        self.assertEqual(found.status, MATCHED_STATUS)
        self.assertEqual(lost.matched_found_item_id, found.id)
        self.assertIs(lost.matched_found_item, found)

    def test_mark_claimed_only_once(self):
        lost = add_lost_item(self.db, status="MATCHED")

        self.assertTrue(self.repo.items.mark_claimed(lost))
        self.assertFalse(self.repo.items.mark_claimed(lost))
        self.assertEqual(lost.status, CLAIMED_STATUS)

    def test_status_constants_are_valid_statuses(self):
        for status in (OPEN_STATUS, MATCHED_STATUS, CLAIMED_STATUS):
            self.assertIn(status, ITEM_STATUSES)


class TestDeclinedMatchRepository(RepositoryTestCase):
    """Tests for DeclinedMatchRepository."""

    def setUp(self):
        super().setUp()
        self.lost = add_lost_item(self.db, item_id="lost-a")
        self.found = add_found_item(self.db, item_id="found-a")
        add_found_item(self.db, item_id="found-b")

    def test_exclusion_set_in_both_directions(self):
        self.repo.declined.upsert_declined("lost-a", "found-a", "admin-1", "wrong colour")
        self.repo.commit()

        self.assertEqual(self.repo.declined.get_declined_candidate_ids(ItemKind.LOST, "lost-a"), {"found-a"})
        self.assertEqual(self.repo.declined.get_declined_candidate_ids(ItemKind.FOUND, "found-a"), {"lost-a"})
        self.assertEqual(self.repo.declined.get_declined_candidate_ids(ItemKind.FOUND, "found-b"), set())

    def test_upsert_updates_existing_row(self):
        first = self.repo.declined.upsert_declined("lost-a", "found-a", "admin-1", "first")
        second = self.repo.declined.upsert_declined("lost-a", "found-a", "admin-2", "second")
        self.repo.commit()

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.declined_by, "admin-2")
        self.assertEqual(second.reason, "second")


class TestActivityLogRepository(RepositoryTestCase):

    def test_log_and_filter_by_action(self):
        lost = add_lost_item(self.db)
        self.repo.activity.log("admin-1", "MATCH", "LOST", lost.id, lost.title, {"foundItemId": "f"})
        self.repo.activity.log("admin-1", "CLAIM", "LOST", lost.id, lost.title)
        self.repo.commit()

        entries = self.repo.activity.get_for_item("LOST", lost.id)
        claims = self.repo.activity.get_for_item("LOST", lost.id, action="CLAIM")

        self.assertEqual(len(entries), 2)
        self.assertEqual(len(claims), 1)
        self.assertEqual(claims[0].details, {})


class TestHandoffRepository(RepositoryTestCase):
    """Tests for HandoffRepository."""

    def setUp(self):
        super().setUp()
        self.lost = add_lost_item(self.db, item_id="lost-a")
        self.found = add_found_item(self.db, item_id="found-a")
        self.machine = HandoffStateMachine()

    def _create(self):
        state = self.machine.create("lost-a", "found-a", "owner-1", "admin-1")
        row = self.repo.handoffs.add_session(state)
        self.repo.commit()
        return row

    def test_state_round_trip(self):
        row = self._create()
        session_id = row.id
        self.db.expire_all()

        state = to_handoff_state(self.repo.handoffs.get_session(session_id))

        self.assertEqual(state.id, session_id)
        self.assertEqual(state.status, HandoffStatus.ACTIVE)
        self.assertEqual(state.role_of("owner-1"), PartyRole.OWNER)
        self.assertIsNotNone(state.expires_at.tzinfo)
        self.assertGreater(state.expires_at, datetime.now(timezone.utc))

    def test_apply_state_persists_transition(self):
        row = self._create()
        state = to_handoff_state(row)

        result = self.machine.submit(state, PartyRole.OWNER, "000000")
        self.repo.handoffs.apply_state(row, result.state)
        self.repo.commit()
        self.db.expire_all()

        reloaded = to_handoff_state(self.repo.handoffs.get_session(row.id, for_update=True))
        self.assertEqual(reloaded.owner_attempts, 1)

    def test_latest_active_for_lost_item(self):
        row = self._create()

        self.assertEqual(self.repo.handoffs.get_latest_active_for_lost_item("lost-a").id, row.id)
        self.assertIsNone(self.repo.handoffs.get_latest_active_for_lost_item("lost-other"))

        row.status = HandoffStatus.COMPLETED.value
        self.repo.commit()

        self.assertIsNone(self.repo.handoffs.get_latest_active_for_lost_item("lost-a"))
        self.assertEqual(self.repo.handoffs.list_active(), [])


class TestUnitOfWork(RepositoryTestCase):

    def test_commits_on_success(self):
        add_lost_item(self.db, item_id="lost-x")
        add_found_item(self.db, item_id="found-x")

        with lostfound_uow(self.session_factory) as repo:
            repo.declined.upsert_declined("lost-x", "found-x", "admin-1")

        with lostfound_uow(self.session_factory) as repo:
            self.assertIsNotNone(repo.declined.get_declined("lost-x", "found-x"))

    def test_rolls_back_on_error(self):
        with self.assertRaises(RuntimeError):
            with lostfound_uow(self.session_factory) as repo:
                repo.activity.log("admin-1", "MATCH", "LOST", "lost-x", "Phone")
                raise RuntimeError("abort")

        with lostfound_uow(self.session_factory) as repo:
            self.assertEqual(repo.activity.get_for_item("LOST", "lost-x"), [])


if __name__ == '__main__':
    unittest.main()
