"""
Database Schema
SQLAlchemy models for events, players and their participations
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(64), nullable=False, unique=True)
    name = Column(String(300), nullable=False)
    date = Column(String(100))
    # ISO start date ("2026-02-07"), sort key only
    date_start = Column(String(10))
    city = Column(String(200))
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    participations = relationship("Participation", back_populates="event")

    def __repr__(self) -> str:
        return f"<Event {self.event_id} {self.name!r}>"


class Player(Base):
    """A player identified by (masked id, first name, last name, country)."""

    __tablename__ = "players"
    __table_args__ = (
        UniqueConstraint(
            "player_id_masked",
            "first_name",
            "last_name",
            "country",
            name="players_identity_unique",
        ),
        Index("players_name_idx", "first_name", "last_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id_masked = Column(String(50), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    country = Column(String(2), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    participations = relationship("Participation", back_populates="player")

    def __repr__(self) -> str:
        return f"<Player {self.id} {self.first_name} {self.last_name} ({self.country})>"


class Participation(Base):
    __tablename__ = "participations"
    __table_args__ = (
        UniqueConstraint("player_id", "event_id", name="participations_player_event_unique"),
        Index("participations_player_idx", "player_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    division = Column(String(50))
    deck_list_url = Column(Text)
    standing = Column(Integer)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    player = relationship("Player", back_populates="participations")
    event = relationship("Event", back_populates="participations")
