"""
Database package.

This package contains all database-related code:
- models: SQLAlchemy ORM models
- database: Connection management and sessions
- services: Store access for the players table
"""

# Import and expose key components
from database.base import Base
from database.models import Player
from database.enums import (
    ClanRole,
    role_rank,
    role_display_name,
    role_with_higher_rank,
)
from database.database import (
    DatabaseManager,
    get_db_manager,
    set_db_manager,
    get_session,
    session_scope
)
from database.services import PlayerStore

__all__ = [
    'Base',
    'Player',
    'ClanRole',
    'role_rank',
    'role_display_name',
    'role_with_higher_rank',
    'PlayerStore',
    'DatabaseManager',
    'get_db_manager',
    'set_db_manager',
    'get_session',
    'session_scope',
]
