# numbers_erp/core/db.py - Engine, sessions and health check
from sqlalchemy import create_engine, text, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from typing import Generator, Optional
from contextlib import contextmanager
import logging
import time

from numbers_erp.core.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_SECONDS = 0.1


class DatabaseManager:
    """Lazily builds the engine and hands out sessions that roll back on error"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def location(self) -> str:
        """Host/database part of the URL, without credentials"""
        return self.database_url.split("@")[-1] if "@" in self.database_url else "local"

    def initialize(self):
        if self.engine is not None:
            return

        if self.is_sqlite:
            # In-memory databases only live as long as their single connection
            engine = create_engine(
                self.database_url,
                echo=settings.DATABASE_ECHO,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(
                self.database_url,
                echo=settings.DATABASE_ECHO,
                pool_size=settings.DATABASE_POOL_SIZE,
                max_overflow=settings.DATABASE_MAX_OVERFLOW,
                pool_timeout=settings.DATABASE_POOL_TIMEOUT,
                pool_recycle=settings.DATABASE_POOL_RECYCLE,
                pool_pre_ping=True,
                connect_args={
                    "connect_timeout": 10,
                    "application_name": f"numbers_erp_{settings.ENV}",
                    "options": "-c timezone=UTC",
                },
            )

        self._attach_listeners(engine)
        self.engine = engine
        self.SessionLocal = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(f"Database engine ready ({engine.dialect.name} at {self.location})")

    def _attach_listeners(self, engine: Engine):
        is_sqlite = self.is_sqlite

        @event.listens_for(engine, "connect")
        def enable_foreign_keys(dbapi_connection, connection_record):
            # SQLite leaves foreign keys unenforced unless asked
            if is_sqlite:
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        if not settings.is_development:
            return

        @event.listens_for(engine, "before_cursor_execute")
        def start_timer(conn, cursor, statement, parameters, context, executemany):
            context._query_start_time = time.time()

        @event.listens_for(engine, "after_cursor_execute")
        def log_slow_query(conn, cursor, statement, parameters, context, executemany):
            elapsed = time.time() - context._query_start_time
            if elapsed > SLOW_QUERY_SECONDS:
                logger.warning(f"Slow query ({elapsed:.3f}s): {statement[:100]}...")

    def get_session(self) -> Generator[Session, None, None]:
        """Request-scoped session; any error escaping the handler rolls it back"""
        self.initialize()
        session = self.SessionLocal()
        try:
            yield session
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self):
        """
        Commit on success, roll back on any exception.

        Usage:
            with db_manager.transaction() as session:
                session.add(lesson)
        """
        self.initialize()
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Transaction error: {e}")
            raise
        finally:
            session.close()

    def health_check(self) -> dict:
        try:
            self.initialize()
            start_time = time.time()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
                "database_url": self.location,
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}

    def close(self):
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.SessionLocal = None


db_manager = DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session"""
    yield from db_manager.get_session()


def get_engine() -> Engine:
    db_manager.initialize()
    return db_manager.engine


def health_check() -> dict:
    return db_manager.health_check()
