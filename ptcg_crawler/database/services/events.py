"""
Database services for tournament events.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select

from ..manager import DatabaseManager
from ..schema import Event

# Keeps the IN (...) list below SQLite's bound-parameter limit
_EXISTENCE_CHUNK = 500


def find_event_by_external_id(db: DatabaseManager, event_id: str) -> Optional[Event]:
    with db.session_scope() as session:
        return session.execute(
            select(Event).where(Event.event_id == event_id).limit(1)
        ).scalar_one_or_none()


def existing_external_ids(db: DatabaseManager, event_ids: Iterable[str]) -> list[str]:
    """Return the subset of ``event_ids`` that is already stored."""
    ids = list(dict.fromkeys(event_ids))
    if not ids:
        return []
    found: list[str] = []
    with db.session_scope() as session:
        for start in range(0, len(ids), _EXISTENCE_CHUNK):
            chunk = ids[start : start + _EXISTENCE_CHUNK]
            found.extend(
                session.execute(select(Event.event_id).where(Event.event_id.in_(chunk))).scalars()
            )
    return found


def insert_event(
    db: DatabaseManager,
    *,
    event_id: str,
    name: str,
    date: Optional[str],
    date_start: Optional[str],
    city: Optional[str],
) -> Event:
    """Insert a new event; a duplicate ``event_id`` raises IntegrityError."""
    with db.session_scope() as session:
        event = Event(event_id=event_id, name=name, date=date, date_start=date_start, city=city)
        session.add(event)
        session.flush()
        return event


def get_all_events(db: DatabaseManager) -> list[Event]:
    with db.session_scope() as session:
        return list(session.execute(select(Event).order_by(Event.id)).scalars())
