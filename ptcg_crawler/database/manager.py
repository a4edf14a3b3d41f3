"""
Database Manager
Engine and session lifecycle for the crawler's relational store (SQLAlchemy)
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ptcg_crawler.common.logging_utils import get_logger
from ptcg_crawler.core.config import settings
from ptcg_crawler.database.schema import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class DatabaseManager:
    """Owns the engine and session factory.

    ``initialize()`` is re-entrant and ``close()`` is safe to call on a manager
    that was never opened or is already closed.
    """

    def __init__(self, database_url: Optional[str] = None, *, echo: bool = False):
        self.database_url = database_url or settings.database_url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self.logger = get_logger(__name__)

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    def _build_engine(self) -> Engine:
        url = make_url(self.database_url)
        if url.get_backend_name() != "sqlite":
            return create_engine(url, poolclass=QueuePool, echo=self.echo, future=True)

        in_memory = url.database in (None, "", ":memory:")
        if in_memory:
            # One shared connection, otherwise every session sees an empty database
            engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=self.echo,
                future=True,
            )
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(url, echo=self.echo, future=True)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def initialize(self) -> Engine:
        """Create engine, session factory and tables (idempotent)."""
        if self.engine is not None:
            return self.engine
        try:
            engine = self._build_engine()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            self.engine = engine
            self.SessionLocal = sessionmaker(
                bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
            )
            self.create_tables()
            self.logger.info("Database engine initialized (SQLAlchemy)")
            return engine
        except Exception as e:
            self.logger.error(f"Failed to initialize database: {e}")
            self.engine = None
            self.SessionLocal = None
            raise

    def get_session(self) -> Session:
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self):
        if not self.engine:
            raise RuntimeError("Database not initialized")
        Base.metadata.create_all(bind=self.engine)
        self.logger.debug("Database tables ensured")

    def drop_tables(self):
        """Drop all tables (careful!)"""
        if not self.engine:
            raise RuntimeError("Database not initialized")
        Base.metadata.drop_all(bind=self.engine)
        self.logger.warning("All database tables dropped")

    def close(self):
        if self.engine is not None:
            self.engine.dispose()
            self.logger.info("Database engine disposed")
        self.engine = None
        self.SessionLocal = None
