"""
Database configuration and utilities.

This module provides database connection management, session handling,
and table creation utilities using SQLAlchemy.
"""

import os
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv
# Import Base and models to ensure they're registered
from database.models import Base
from src.logging import get_logger

# Load environment variables
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///clan_tracker.db"

# Columns added after the first release of the players table.
# Maps column name -> SQL type used in ALTER TABLE.
LATE_COLUMNS = {
    "last_seen_active": "TIMESTAMP",
}


class DatabaseManager:
    """
    Manages database connections and sessions.

    This class provides a centralized way to manage database connections,
    create sessions, and initialize the database schema.
    """

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize the database manager.

        Args:
            database_url: Optional database URL. If not provided,
                         reads from DATABASE_URL environment variable
                         and falls back to a local SQLite file.
        """
        self.database_url = database_url or os.getenv('DATABASE_URL') or DEFAULT_DATABASE_URL
        self.engine = create_engine(self.database_url, **self._engine_options(self.database_url))

        # Records are handed back to callers after the session closes,
        # so attributes must stay loaded after commit
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

    @staticmethod
    def _engine_options(database_url: str) -> dict:
        if not database_url.startswith("sqlite"):
            return {
                "echo": False,
                "pool_pre_ping": True,
                "pool_size": 5,
                "max_overflow": 10,
            }

        options = {
            "echo": False,
            "connect_args": {"check_same_thread": False},
        }
        # In-memory databases live inside a single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    def create_tables(self):
        """
        Create all tables defined in the models.

        Tables that already exist will not be modified; use
        ensure_columns() to migrate older tables.
        """
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """
        Drop all tables defined in the models.

        WARNING: This will delete all data in the tables!
        """
        Base.metadata.drop_all(bind=self.engine)

    def ensure_columns(self) -> list[str]:
        """
        Add columns missing from a players table created by an older release.

        Returns:
            Names of the columns that were added
        """
        inspector = inspect(self.engine)
        if not inspector.has_table("players"):
            return []

        existing = {col["name"] for col in inspector.get_columns("players")}
        added = []
        with self.engine.begin() as conn:
            for column, sql_type in LATE_COLUMNS.items():
                if column in existing:
                    continue
                conn.execute(text(f"ALTER TABLE players ADD COLUMN {column} {sql_type}"))
                added.append(column)
        return added

    def get_session(self) -> Session:
        """
        Get a new database session.

        Remember to close the session when done.
        """
        return self.SessionLocal()

    @contextmanager
    def session_scope(self):
        """
        Provide a transactional scope for database operations.

        Usage:
            with db.session_scope() as session:
                session.merge(player)
                # Automatically commits on success, rolls back on error

        Yields:
            Session: SQLAlchemy session object
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

    def health_check(self) -> bool:
        """
        Check if database connection is healthy.

        Returns:
            bool: True if connection is healthy, False otherwise
        """
        try:
            with self.session_scope() as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            get_logger().error(f"Database health check failed: {e}")
            return False


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get the shared database manager. Creates one if needed."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    """Replace the shared database manager (used by the app factory and tests)."""
    global _db_manager
    _db_manager = manager


def get_session() -> Session:
    """Convenience function to get a database session."""
    return get_db_manager().get_session()


def session_scope():
    """
    Convenience function for transactional scope.

    Example:
        from database import session_scope

        with session_scope() as session:
            session.merge(player)
    """
    return get_db_manager().session_scope()
