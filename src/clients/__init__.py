"""
Clients package - External API integrations.

Handles communication with:
- Clash of Clans API: clan member list, player profiles, war league data
"""

from .coc_client import ClashAPIClient, encode_tag
from .models import (
    LeagueGroup,
    MemberSummary,
    PlayerSnapshot,
    WarAttack,
    WarClan,
    WarMember,
    WarReport,
)

__all__ = [
    'ClashAPIClient',
    'encode_tag',
    'LeagueGroup',
    'MemberSummary',
    'PlayerSnapshot',
    'WarAttack',
    'WarClan',
    'WarMember',
    'WarReport',
]
