#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session, sessionmaker

from core.handoff import HandoffStateMachine
from database.database import create_db_engine
from notification import HandoffEventBridge, RedisBroker
from .config import get_config

logger = logging.getLogger(__name__)

ADMIN_ROLE = "ADMIN"
USER_ROLE = "USER"


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, url: Optional[str] = None):
        config = get_config()
        self.engine = create_db_engine(url or config.database.url)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session.

        Yields:
            Session: SQLAlchemy database session.
        """
        session = self.SessionLocal()
        try:
            yield session
        finally:
            session.close()


# Created on first use so importing the app does not connect
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session.

    Usage:
        @app.get("/endpoint")
        def my_endpoint(db: Session = Depends(get_db)):
            ...

    Yields:
        Session: Database session that will be automatically closed.
    """
    yield from get_db_manager().get_session()


def get_session_factory() -> sessionmaker:
    """Session factory for work that outlives a request-scoped session (SSE)."""
    return get_db_manager().SessionLocal


def get_db_engine():
    """Get the database engine (for advanced use cases)."""
    return get_db_manager().engine


@dataclass(frozen=True)
class Caller:
    """Identity established by the upstream authorization layer."""
    user_id: str
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Caller:
    """
    Read the caller from the X-User-Id / X-User-Role headers.

    Raises:
        HTTPException: 401 when no user id is present.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")

    role = (x_user_role or USER_ROLE).strip().upper()
    if role not in (ADMIN_ROLE, USER_ROLE):
        role = USER_ROLE

    return Caller(user_id=x_user_id.strip(), role=role)


def require_admin(caller: Caller = Depends(get_current_user)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return caller


# Process-wide bridge, rebuilt after close
_event_bridge: Optional[HandoffEventBridge] = None


def build_event_bridge() -> HandoffEventBridge:
    """Create the bridge for the configured events backend."""
    events = get_config().events
    if events.backend == "redis":
        logger.info(f"Handoff events via Redis at {events.redis_url}")
        return HandoffEventBridge(RedisBroker(redis_url=events.redis_url, channel=events.channel))
    return HandoffEventBridge()


def get_event_bridge() -> HandoffEventBridge:
    global _event_bridge
    if _event_bridge is None or _event_bridge.closed:
        _event_bridge = build_event_bridge()
    return _event_bridge


def close_event_bridge() -> None:
    global _event_bridge
    if _event_bridge is not None:
        _event_bridge.close()
        _event_bridge = None


@lru_cache()
def get_state_machine() -> HandoffStateMachine:
    """State machine built from the handoff section of the config."""
    handoff = get_config().handoff
    return HandoffStateMachine(
        ttl=timedelta(minutes=handoff.ttl_minutes),
        max_attempts=handoff.max_attempts,
        code_length=handoff.code_length,
    )
