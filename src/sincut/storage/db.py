"""Database connection and session management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sincut.logging_config import get_logger
from sincut.settings import settings

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        """Initialize database connection.

        Args:
            database_url: Database URL (defaults to settings)
        """
        self.database_url = database_url or settings.database_url

        engine_kwargs = {
            "echo": settings.env == "development",
            "pool_pre_ping": True,
        }
        is_sqlite = self.database_url.startswith("sqlite")
        in_memory = self.database_url in ("sqlite://", "sqlite:///:memory:")
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            # In-memory SQLite lives inside a single connection
            if in_memory:
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.database_url, **engine_kwargs)
        if is_sqlite and not in_memory:
            self._setup_sqlite_write_lock()
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        logger.info("database_initialized", url=self.engine.url.render_as_string(hide_password=True))

    def _setup_sqlite_write_lock(self) -> None:
        """Open every SQLite transaction with BEGIN IMMEDIATE.

        SQLite ignores SELECT ... FOR UPDATE, so balance read-modify-write
        cycles are serialized by taking the database write lock up front.
        """

        @event.listens_for(self.engine, "connect")
        def disable_driver_begin(dbapi_connection, connection_record):
            # pysqlite would otherwise emit its own deferred BEGIN
            dbapi_connection.isolation_level = None

        @event.listens_for(self.engine, "begin")
        def begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def create_tables(self) -> None:
        """Create all tables in the database."""
        # Register mappers before touching metadata
        import sincut.auth.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("tables_created")

    def drop_tables(self) -> None:
        """Drop all tables from the database."""
        import sincut.auth.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)
        logger.warning("tables_dropped")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope for database operations.

        Yields:
            Database session
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


# Global database instance
db = Database()
