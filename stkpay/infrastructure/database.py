"""
Database configuration - SQLAlchemy 2.x (sync)

The engine is owned by an explicitly constructed ``Database`` object. The
application opens it at startup, stores it on ``app.state`` and disposes it
at shutdown; request handlers get sessions through ``get_db``.
"""

import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models - SQLAlchemy 2.x style"""
    pass


class Database:
    """Engine + session factory with an open/dispose lifecycle"""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_url(cls, url: str, pool_size: int = 5, max_overflow: int = 10) -> "Database":
        """
        Build a Database for ``url``.

        SQLite URLs get a single shared connection (StaticPool) so that
        in-memory databases survive across sessions; other backends get a
        regular pre-pinged pool.
        """
        if url.startswith("sqlite"):
            engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
            )
        return cls(engine)

    def create_all(self) -> None:
        """Create tables for every imported model (tests and local runs; production uses Alembic)"""
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def ping(self) -> bool:
        """Return True when the database answers ``SELECT 1``"""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    """Dependency returning the Database opened by the application lifespan"""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialised; is the application lifespan running?")
    return database


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency to get database session
    """
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
