"""
Player database model for the clan roster snapshot.

One row per player tag. Rows are created on the first successful sync
for a tag and updated by every sync after that; they are never deleted
when a player leaves the clan.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.types import TypeDecorator
from database.base import Base
from database.enums import role_rank


def _utcnow():
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamp stored in UTC and always read back timezone-aware (SQLite drops tzinfo)."""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Player(Base):
    """
    Player model for tracked clan members.

    Attributes:
        tag: Player tag (e.g., "#2PP"), primary key
        name: Sanitized display name
        role: Current clan role (raw API value)
        highest_role: Highest role ever observed for this player
        town_hall_level, exp_level, trophies, best_trophies, war_stars:
            Profile stats from the latest snapshot
        donations, donations_received: Current season donations
        troop_donations, spell_donations, siege_donations:
            Lifetime donation totals from achievements
        last_seen_active: Last time donations or exp level changed
    """

    __tablename__ = 'players'

    tag = Column(String(20), primary_key=True)

    name = Column(String(100), nullable=False, default='')
    role = Column(String(20), nullable=False)
    highest_role = Column(String(20), nullable=False)

    town_hall_level = Column(Integer, nullable=True)
    exp_level = Column(Integer, nullable=True)
    trophies = Column(Integer, nullable=True)
    best_trophies = Column(Integer, nullable=True)
    war_stars = Column(Integer, nullable=True)
    donations = Column(Integer, nullable=True)
    donations_received = Column(Integer, nullable=True)
    troop_donations = Column(Integer, nullable=True)
    spell_donations = Column(Integer, nullable=True)
    siege_donations = Column(Integer, nullable=True)

    last_seen_active = Column(UTCDateTime(timezone=True), nullable=True)

    created_at = Column(UTCDateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index('idx_player_highest_role', 'highest_role'),
        Index('idx_player_name', 'name'),
    )

    def __repr__(self):
        """String representation of Player."""
        return f"<Player(tag='{self.tag}', name='{self.name}', role='{self.role}', highest_role='{self.highest_role}')>"

    @property
    def sort_order(self) -> int:
        return role_rank(self.highest_role)

    def to_dict(self):
        """
        Convert player to the API's camelCase dictionary format.

        Returns:
            dict: Player data as dictionary
        """
        return {
            'tag': self.tag,
            'name': self.name,
            'role': self.role,
            'highestRole': self.highest_role,
            'townHallLevel': self.town_hall_level,
            'expLevel': self.exp_level,
            'trophies': self.trophies,
            'bestTrophies': self.best_trophies,
            'warStars': self.war_stars,
            'donations': self.donations,
            'donationsReceived': self.donations_received,
            'troopDonations': self.troop_donations,
            'spellDonations': self.spell_donations,
            'siegeDonations': self.siege_donations,
            'lastSeenActive': self.last_seen_active.isoformat() if self.last_seen_active else None,
        }
