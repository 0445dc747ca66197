"""
Database handle for the local store.

The engine and session factory live on a ``Database`` object with an explicit
init/close lifecycle. The application creates one at startup and request
handlers receive sessions from it through ``get_db``.
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from flow_reader.db.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        engine_kwargs = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if url in ("sqlite://", "sqlite:///:memory:"):
                # Keep a single connection so the in-memory schema survives
                engine_kwargs["poolclass"] = StaticPool

        self.engine: Engine = create_engine(
            url,
            future=True,
            echo=echo,
            connect_args=connect_args,
            **engine_kwargs,
        )
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def init(self) -> None:
        """Create tables that do not exist yet."""
        # Register all models on Base.metadata before creating the schema
        import flow_reader.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Database initialized: {self.engine.url.render_as_string(hide_password=True)}")

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def close(self) -> None:
        """Dispose of pooled connections."""
        self.engine.dispose()
        logger.info("Database closed")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session that is always closed afterwards."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()


def create_database(url: Optional[str] = None) -> Database:
    """Build a Database for the configured URL."""
    from flow_reader.core.config import settings

    return Database(url or settings.DATABASE_URL)
