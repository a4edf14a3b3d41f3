"""
Database services for event participations.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ptcg_crawler.domain.contracts import InsertOutcome

from ..manager import DatabaseManager
from ..schema import Participation


def _pair_exists(db: DatabaseManager, player_id: int, event_id: int) -> bool:
    with db.session_scope() as session:
        return (
            session.execute(
                select(Participation.id)
                .where(Participation.player_id == player_id, Participation.event_id == event_id)
                .limit(1)
            ).scalar_one_or_none()
            is not None
        )


def insert_participation(
    db: DatabaseManager,
    *,
    player_id: int,
    event_id: int,
    division: Optional[str],
    deck_list_url: Optional[str],
    standing: Optional[int],
) -> InsertOutcome[Participation]:
    """Link a player to an event.

    A second insert for the same (player, event) pair is ALREADY_EXISTS;
    any other integrity failure (e.g. unknown foreign key) is raised.
    """
    try:
        with db.session_scope() as session:
            participation = Participation(
                player_id=player_id,
                event_id=event_id,
                division=division,
                deck_list_url=deck_list_url,
                standing=standing,
            )
            session.add(participation)
            session.flush()
            return InsertOutcome.created(participation)
    except IntegrityError:
        if _pair_exists(db, player_id, event_id):
            return InsertOutcome.already_exists()
        raise


def get_participations_by_player_id(db: DatabaseManager, player_id: int) -> list[Participation]:
    with db.session_scope() as session:
        return list(
            session.execute(
                select(Participation).where(Participation.player_id == player_id)
            ).scalars()
        )


def get_participations_by_event_id(db: DatabaseManager, event_id: int) -> list[Participation]:
    with db.session_scope() as session:
        return list(
            session.execute(
                select(Participation).where(Participation.event_id == event_id)
            ).scalars()
        )
