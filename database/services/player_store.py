"""
Player Store for the clan roster snapshot.

Provides get/upsert/list access to the players table. Records returned
by the store are detached from their session, so callers can read them
freely after the call returns.
"""

from __future__ import annotations

import threading
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from database.database import DatabaseManager, get_db_manager
from database.enums import role_rank
from database.models.player import Player
from src.errors import StoreFailure


# Orderings supported by PlayerStore.list()
ORDER_BY_TAG = "tag"
ORDER_BY_NAME = "name"
ORDER_BY_ROLE = "role"
ORDER_BY_TROPHIES = "trophies"


class PlayerStore:
    """
    Persistent store for Player records keyed by tag.

    Usage:
        store = PlayerStore()

        existing = store.get("#2PP")
        store.upsert(Player(tag="#2PP", name="Bob", role="member", highest_role="member"))
        roster = store.list(order_by="role")
    """

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or get_db_manager()
        # Sync workers call into the store from several threads at once
        self._lock = threading.Lock()

    def get(self, tag: str) -> Optional[Player]:
        """
        Get the stored record for a player tag.

        Args:
            tag: Player tag including the leading '#'

        Returns:
            Player or None if the tag has never been synced
        """
        try:
            with self._lock, self.db.session_scope() as session:
                return session.get(Player, tag)
        except SQLAlchemyError as e:
            raise StoreFailure(f"Failed to read player {tag}: {e}") from e

    def upsert(self, player: Player) -> None:
        """
        Insert or update a player record by tag.

        Args:
            player: Fully populated Player (transient or detached)
        """
        try:
            with self._lock, self.db.session_scope() as session:
                session.merge(player)
        except SQLAlchemyError as e:
            raise StoreFailure(f"Failed to save player {player.tag}: {e}") from e

    def list(self, order_by: Optional[str] = None) -> List[Player]:
        """
        List all stored players.

        Args:
            order_by: "tag", "name", "trophies" (descending) or "role"
                (highest role descending, then name). None keeps tag order.

        Returns:
            List of Player objects
        """
        try:
            with self._lock, self.db.session_scope() as session:
                query = session.query(Player)
                if order_by == ORDER_BY_NAME:
                    query = query.order_by(Player.name)
                elif order_by == ORDER_BY_TROPHIES:
                    query = query.order_by(Player.trophies.desc(), Player.name)
                else:
                    query = query.order_by(Player.tag)
                players = query.all()
        except SQLAlchemyError as e:
            raise StoreFailure(f"Failed to list players: {e}") from e

        if order_by == ORDER_BY_ROLE:
            # Rank lives in the enum, not the table
            players.sort(key=lambda p: (-role_rank(p.highest_role), p.name.lower()))
        elif order_by not in (None, ORDER_BY_TAG, ORDER_BY_NAME, ORDER_BY_TROPHIES):
            raise ValueError(f"Unsupported order_by: {order_by}")
        return players

    def count(self) -> int:
        try:
            with self._lock, self.db.session_scope() as session:
                return session.query(Player).count()
        except SQLAlchemyError as e:
            raise StoreFailure(f"Failed to count players: {e}") from e
