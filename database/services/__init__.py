"""
Database services for business logic around database operations.
"""

from database.services.player_store import PlayerStore

__all__ = [
    "PlayerStore",
]
