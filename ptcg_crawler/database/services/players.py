"""
Database services for player identity resolution.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ptcg_crawler.domain.contracts import PlayerResolution

from ..manager import DatabaseManager
from ..schema import Player


def _identity_query(player_id_masked: str, first_name: str, last_name: str, country: str):
    return (
        select(Player)
        .where(
            Player.player_id_masked == player_id_masked,
            Player.first_name == first_name,
            Player.last_name == last_name,
            Player.country == country,
        )
        .limit(1)
    )


def find_or_create_player(
    db: DatabaseManager,
    *,
    player_id_masked: str,
    first_name: str,
    last_name: str,
    country: str,
) -> PlayerResolution:
    """Resolve a player by the 4-field composite key, creating it when unseen.

    The first recorded spelling wins: a corrected name or country for the same
    masked id resolves to a different player row.
    """
    query = _identity_query(player_id_masked, first_name, last_name, country)
    with db.session_scope() as session:
        existing = session.execute(query).scalar_one_or_none()
        if existing is not None:
            return PlayerResolution(player=existing, created=False)

    try:
        with db.session_scope() as session:
            player = Player(
                player_id_masked=player_id_masked,
                first_name=first_name,
                last_name=last_name,
                country=country,
            )
            session.add(player)
            session.flush()
            return PlayerResolution(player=player, created=True)
    except IntegrityError:
        # Lost a race against another writer; the row exists now
        with db.session_scope() as session:
            existing = session.execute(query).scalar_one_or_none()
        if existing is None:
            raise
        return PlayerResolution(player=existing, created=False)


def find_player_by_id(db: DatabaseManager, player_id: int) -> Optional[Player]:
    with db.session_scope() as session:
        return session.get(Player, player_id)
