"""
Engine and session management.

PostgreSQL is the deployment target; SQLite files are supported for local
runs and the test suite.
"""
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from database.models import Base
from core.logger import logger


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> Dict[str, Any]:
    if not database_url.startswith("sqlite"):
        return {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,
        }
    # Handlers and sequence allocation share connections across worker threads;
    # the busy timeout makes concurrent writers queue instead of failing
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False, "timeout": 30}}
    if ":memory:" not in database_url:
        options.update(pool_size=pool_size, max_overflow=max_overflow)
    return options


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, database_url: str, pool_size: int = 10, max_overflow: int = 20):
        """
        Args:
            database_url: SQLAlchemy URL (postgresql://... or sqlite:///...)
            pool_size: Connections kept open in the pool
            max_overflow: Extra connections allowed under load
        """
        self.database_url = database_url
        self.engine = create_engine(
            database_url,
            echo=False,
            **_engine_options(database_url, pool_size, max_overflow)
        )
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        target = database_url.split('@')[1] if '@' in database_url else self.engine.dialect.name
        logger.info(f"Database engine initialized: {target}")

    def create_tables(self):
        """Create missing tables (no-op for existing ones)."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        One unit of work: committed when the block exits normally, rolled
        back and re-raised otherwise.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
