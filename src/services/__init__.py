"""
Services package - Roster sync and war league logic.
"""

from src.services.roster_sync import RosterSyncService, SyncOutcome
from src.services.roster_update import RosterUpdateService
from src.services.war_league import (
    ClanWarLeagueSummary,
    LeagueStats,
    WarLeagueAggregator,
    WarParticipationStat,
)

__all__ = [
    "RosterSyncService",
    "SyncOutcome",
    "RosterUpdateService",
    "WarLeagueAggregator",
    "WarParticipationStat",
    "ClanWarLeagueSummary",
    "LeagueStats",
]
