"""
Database Module
SQLAlchemy schema and database manager
"""

from .manager import DatabaseManager
from .schema import Base, Event, Participation, Player

__all__ = [
    "DatabaseManager",
    "Base",
    "Event",
    "Player",
    "Participation",
]
