"""
Read queries over the ingested data: player search and per-player history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, exists, func, or_, select

from .manager import DatabaseManager
from .schema import Event, Participation, Player

DEFAULT_SEARCH_LIMIT = 100
MAX_SEARCH_LIMIT = 500


@dataclass
class PlayerWithCount:
    id: int
    player_id_masked: str
    first_name: str
    last_name: str
    country: str
    participation_count: int


@dataclass
class ParticipationDetail:
    participation_id: int
    event_id: str
    event_name: str
    event_date: Optional[str]
    event_date_start: Optional[str]
    event_city: Optional[str]
    division: Optional[str]
    deck_list_url: Optional[str]
    standing: Optional[int]
    player_id_masked: str
    country: str


def _escape_like(word: str) -> str:
    return word.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_name_conditions(name: str) -> list:
    """One condition per word: the word is in the first OR last name.

    "J. Tomás Maxwell" matches first_name="J. Tomás", last_name="Maxwell".
    """
    conditions = []
    for word in name.split():
        pattern = f"%{_escape_like(word.lower())}%"
        conditions.append(
            or_(
                func.lower(Player.first_name).like(pattern, escape="\\"),
                func.lower(Player.last_name).like(pattern, escape="\\"),
            )
        )
    return conditions


def search_players(
    db: DatabaseManager,
    name: str,
    *,
    country: Optional[str] = None,
    division: Optional[str] = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[PlayerWithCount]:
    effective_limit = max(1, min(limit, MAX_SEARCH_LIMIT))

    participation_count = (
        select(func.count(Participation.id))
        .where(Participation.player_id == Player.id)
        .correlate(Player)
        .scalar_subquery()
    )
    conditions = build_name_conditions(name)
    if country:
        conditions.append(Player.country == country)
    if division:
        conditions.append(
            exists().where(
                and_(Participation.player_id == Player.id, Participation.division == division)
            )
        )

    query = select(Player, participation_count.label("participation_count"))
    if conditions:
        query = query.where(and_(*conditions))
    query = query.order_by(Player.last_name, Player.first_name, Player.id).limit(effective_limit)
    with db.session_scope() as session:
        rows = session.execute(query).all()
    return [
        PlayerWithCount(
            id=player.id,
            player_id_masked=player.player_id_masked,
            first_name=player.first_name,
            last_name=player.last_name,
            country=player.country,
            participation_count=count or 0,
        )
        for player, count in rows
    ]


def get_participations_with_events(
    db: DatabaseManager, player_id: int, *, division: Optional[str] = None
) -> list[ParticipationDetail]:
    """Participations of one player, newest event first (unknown dates last)."""
    conditions = [Participation.player_id == player_id]
    if division:
        conditions.append(Participation.division == division)

    query = (
        select(Participation, Event, Player)
        .join(Event, Participation.event_id == Event.id)
        .join(Player, Participation.player_id == Player.id)
        .where(*conditions)
        .order_by(Event.date_start.is_(None), Event.date_start.desc(), Event.id.desc())
    )
    with db.session_scope() as session:
        rows = session.execute(query).all()
    return [
        ParticipationDetail(
            participation_id=participation.id,
            event_id=event.event_id,
            event_name=event.name,
            event_date=event.date,
            event_date_start=event.date_start,
            event_city=event.city,
            division=participation.division,
            deck_list_url=participation.deck_list_url,
            standing=participation.standing,
            player_id_masked=player.player_id_masked,
            country=player.country,
        )
        for participation, event, player in rows
    ]
