"""
Database enums and types.

This module contains the clan role enumeration used across models and
services. The role order is a fixed total order:
member < admin (Elder) < coLeader < leader.
"""

from enum import Enum as PyEnum
from typing import Optional, Union


class ClanRole(PyEnum):
    """
    Clan membership role as reported by the Clash of Clans API.

    Values are the raw API strings so records can store them directly.
    """
    MEMBER = "member"
    ADMIN = "admin"
    CO_LEADER = "coLeader"
    LEADER = "leader"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: Union["ClanRole", str, None]) -> Optional["ClanRole"]:
        """Return the matching role, or None for unknown/empty values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def higher(cls, current: "ClanRole", candidate: "ClanRole") -> "ClanRole":
        """Return the higher-ranked role. Ties keep `current`."""
        return candidate if candidate.rank > current.rank else current


_RANKS = {
    ClanRole.MEMBER: 0,
    ClanRole.ADMIN: 1,
    ClanRole.CO_LEADER: 2,
    ClanRole.LEADER: 3,
}

_DISPLAY_NAMES = {
    ClanRole.MEMBER: "Member",
    ClanRole.ADMIN: "Elder",
    ClanRole.CO_LEADER: "Co-Leader",
    ClanRole.LEADER: "Leader",
}

UNKNOWN_RANK = -1
UNKNOWN_DISPLAY_NAME = "Unknown"


def role_rank(role: Union[ClanRole, str, None]) -> int:
    """Rank of a role; unknown roles sort below every known role."""
    parsed = ClanRole.parse(role)
    return parsed.rank if parsed else UNKNOWN_RANK


def role_display_name(role: Union[ClanRole, str, None]) -> str:
    parsed = ClanRole.parse(role)
    return parsed.display_name if parsed else UNKNOWN_DISPLAY_NAME


def role_with_higher_rank(current: Union[ClanRole, str], candidate: Union[ClanRole, str]) -> str:
    """
    Pick the higher-ranked of two raw role strings.

    Args:
        current: Previously stored role (kept on ties)
        candidate: Newly observed role

    Returns:
        The raw API string of the higher role
    """
    if role_rank(candidate) > role_rank(current):
        chosen = candidate
    else:
        chosen = current
    return chosen.value if isinstance(chosen, ClanRole) else chosen
