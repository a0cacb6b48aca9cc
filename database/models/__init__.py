"""
Database models package.

This module imports and exposes all database models.
Importing this package ensures all models are registered with the Base metadata.
"""

from database.base import Base
from database.models.player import Player
from database.enums import ClanRole

__all__ = ['Base', 'ClanRole', 'Player']
