#!/usr/bin/env python3
"""
Test suite configuration and utilities.

This module provides database setup and seed helpers shared by the tests.
All tests can be run with standard Python tools:

    # Run all tests
    python -m pytest tests/ -v

    # Run only tests that touch a database
    python -m pytest tests/ -v -m "db"

    # Using unittest
    python -m unittest discover tests -v

Database Setup:
    Database tests run against a private in-memory SQLite engine per test,
    so no server is needed. SQLite ignores SELECT ... FOR UPDATE; row
    locking is only exercised against PostgreSQL.
"""

import itertools
from datetime import date
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

TEST_DB_URL = "sqlite://"

_sequence = itertools.count(1)


def make_test_engine(url: str = TEST_DB_URL) -> Engine:
    """Fresh engine with every table created."""
    from database.database import create_db_engine
    from database.models import Base

    engine = create_db_engine(url)
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_lost_item(
    db: Session,
    title: str = "Black iPhone 13",
    description: str = "Black iPhone 13 with a cracked screen protector",
    category: str = "Electronics",
    location: Optional[str] = "Main Library",
    lost_date: date = date(2024, 3, 1),
    user_id: str = "owner-1",
    status: str = "PENDING",
    item_id: Optional[str] = None
):
    """Insert and commit a lost item report."""
    from database.models import LostItem

    item = LostItem(
        id=item_id or f"lost-{next(_sequence)}",
        user_id=user_id,
        title=title,
        description=description,
        category=category,
        location=location,
        lost_date=lost_date,
        status=status,
    )
    db.add(item)
    db.commit()
    return item


def add_found_item(
    db: Session,
    title: str = "iPhone 13 black",
    description: str = "Found a black iPhone with cracked screen protector",
    category: str = "Electronics",
    location: str = "Library",
    found_date: date = date(2024, 3, 2),
    user_id: Optional[str] = "finder-1",
    status: str = "PENDING",
    item_id: Optional[str] = None
):
    """Insert and commit a found item report."""
    from database.models import FoundItem

    item = FoundItem(
        id=item_id or f"found-{next(_sequence)}",
        user_id=user_id,
        title=title,
        description=description,
        category=category,
        location=location,
        found_date=found_date,
        status=status,
    )
    db.add(item)
    db.commit()
    return item


class FakeClock:
    """Settable clock for the handoff state machine."""

    def __init__(self, now=None):
        from datetime import datetime, timezone
        self.now = now or datetime.now(timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs) -> None:
        from datetime import timedelta
        self.now += timedelta(**kwargs)


ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}
OWNER_HEADERS = {"X-User-Id": "owner-1", "X-User-Role": "USER"}
STRANGER_HEADERS = {"X-User-Id": "stranger-1", "X-User-Role": "USER"}


def build_test_client(engine: Engine, bridge=None, machine=None):
    """
    TestClient for the full app with its collaborators swapped for test ones.

    Returns:
        (client, app); call app.dependency_overrides.clear() when done.
    """
    from fastapi.testclient import TestClient
    from core.handoff import HandoffStateMachine
    from notification import HandoffEventBridge
    from web.backend.app import app
    from web.backend.dependencies import (
        get_db,
        get_session_factory,
        get_event_bridge,
        get_state_machine,
    )

    session_factory = make_session_factory(engine)
    bridge = bridge or HandoffEventBridge()
    machine = machine or HandoffStateMachine()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_event_bridge] = lambda: bridge
    app.dependency_overrides[get_state_machine] = lambda: machine

    return TestClient(app, raise_server_exceptions=False), app
