"""
War League Service

Folds the wars of the current Clan War League into per-player
performance statistics and a clan-wide summary. Results are built
fresh for every request and never persisted.

Report handling by war state:
- preparation / notInWar: ignored
- inWar: attacks, stars, destruction and defenses are counted
- warEnded: as inWar, plus a missed attack for every member who
  did not attack
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from config.tracker_config import TrackerConfig
from src.clients.coc_client import ClashAPIClient
from src.clients.models import LeagueGroup, WarClan, WarReport
from src.errors import LeagueDataUnavailable, UpstreamUnavailable
from src.logging import get_logger


STATE_PREPARATION = "preparation"
STATE_IN_WAR = "inWar"
STATE_WAR_ENDED = "warEnded"
STATE_NOT_IN_WAR = "notInWar"

TALLIED_STATES = {STATE_IN_WAR, STATE_WAR_ENDED}

# War tag the API uses for rounds that are not scheduled yet
UNSCHEDULED_WAR_TAG = "#0"


def round2(value: float) -> float:
    return round(value, 2)


@dataclass
class WarParticipationStat:
    """
    Accumulated league performance for one player.

    Attributes:
        tag, name: Player identity (name from the latest report seen)
        stars: Stars earned on offense
        destruction: Sum of destruction percentages over all attacks
        attacks: Attacks made
        defenses: Times attacked by an enemy
        stars_conceded: Stars given up on defense
        missed_attacks: Finished wars in which the player did not attack
        wars_participated: Wars the player was in the lineup for
    """
    tag: str
    name: str = ""
    stars: int = 0
    destruction: float = 0
    attacks: int = 0
    defenses: int = 0
    stars_conceded: int = 0
    missed_attacks: int = 0
    wars_participated: int = 0

    @property
    def net_stars(self) -> int:
        return self.stars - self.stars_conceded

    @property
    def avg_destruction(self) -> float:
        return round2(self.destruction / self.attacks) if self.attacks > 0 else 0

    @property
    def avg_stars(self) -> float:
        return round2(self.stars / self.attacks) if self.attacks > 0 else 0

    def to_dict(self):
        return {
            'tag': self.tag,
            'name': self.name,
            'stars': self.stars,
            'destruction': round2(self.destruction),
            'attacks': self.attacks,
            'defenses': self.defenses,
            'starsConceded': self.stars_conceded,
            'missedAttacks': self.missed_attacks,
            'warsParticipated': self.wars_participated,
            'netStars': self.net_stars,
            'avgDestruction': self.avg_destruction,
            'avgStars': self.avg_stars,
        }


@dataclass
class ClanWarLeagueSummary:
    total_attacks: int = 0
    total_missed_attacks: int = 0
    total_stars: int = 0
    average_stars: float = 0

    @classmethod
    def from_stats(cls, stats: Iterable[WarParticipationStat]) -> "ClanWarLeagueSummary":
        stats = list(stats)
        total_attacks = sum(s.attacks for s in stats)
        total_stars = sum(s.stars for s in stats)
        return cls(
            total_attacks=total_attacks,
            total_missed_attacks=sum(s.missed_attacks for s in stats),
            total_stars=total_stars,
            average_stars=round2(total_stars / total_attacks) if total_attacks > 0 else 0,
        )

    def to_dict(self):
        return {
            'totalAttacks': self.total_attacks,
            'totalMissedAttacks': self.total_missed_attacks,
            'totalStars': self.total_stars,
            'averageStars': self.average_stars,
        }


@dataclass
class LeagueStats:
    """Per-player stats (sorted by net stars) plus the clan summary."""
    players: List[WarParticipationStat] = field(default_factory=list)
    summary: ClanWarLeagueSummary = field(default_factory=ClanWarLeagueSummary)

    def to_dict(self):
        return {
            'players': [p.to_dict() for p in self.players],
            'summary': self.summary.to_dict(),
        }


def league_war_tags(group: LeagueGroup) -> List[str]:
    """
    Collect the scheduled war tags from a league group.

    Raises:
        LeagueDataUnavailable: If the group has no rounds or no scheduled wars
    """
    if not group.rounds:
        raise LeagueDataUnavailable("League group has no round data.")

    war_tags = [
        tag
        for league_round in group.rounds
        for tag in league_round.warTags
        if tag and tag != UNSCHEDULED_WAR_TAG
    ]
    if not war_tags:
        raise LeagueDataUnavailable("League group has no scheduled wars yet.")
    return war_tags


class WarLeagueAggregator:
    """
    Builds war league statistics for the configured clan.

    Usage:
        aggregator = WarLeagueAggregator(config, client)

        # Fetch everything from the API
        stats = await aggregator.collect(live_roster_tags={"#2PP", "#8QU"})

        # Or aggregate reports you already have
        stats = aggregator.aggregate(reports, "#CLAN", live_roster_tags)
    """

    def __init__(self, config: TrackerConfig, client: Optional[ClashAPIClient] = None):
        self.config = config
        self.client = client or ClashAPIClient(config)
        self.logger = get_logger()

    async def collect(self, live_roster_tags: Optional[Set[str]] = None) -> LeagueStats:
        """
        Fetch the current league's wars and aggregate them.

        The league group is checked before anything else, so a clan that
        is not in a league is reported as such even when other fetches
        would fail.

        Args:
            live_roster_tags: Tags of players currently in the clan. Fetched
                from the clan member list when omitted.

        Raises:
            NotInLeague: If the clan is not in a league
            LeagueDataUnavailable: If the league has no usable war tags
            UpstreamUnavailable: If any fetch fails (no partial results)
        """
        group = await asyncio.to_thread(self.client.fetch_league_group)
        war_tags = league_war_tags(group)
        self.logger.league_wars_found(len(war_tags))

        if live_roster_tags is None:
            members = await asyncio.to_thread(self.client.fetch_clan_members)
            live_roster_tags = {m.tag for m in members}

        semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

        async def fetch(war_tag: str) -> WarReport:
            async with semaphore:
                return await asyncio.to_thread(self.client.fetch_war, war_tag)

        try:
            reports = await asyncio.gather(*[fetch(tag) for tag in war_tags])
        except UpstreamUnavailable:
            raise
        except Exception as e:
            raise UpstreamUnavailable(f"Failed to fetch league wars: {e}") from e

        stats = self.aggregate(reports, self.config.clan_tag, live_roster_tags)
        self.logger.league_collected(stats)
        return stats

    def aggregate(
        self,
        reports: Iterable[WarReport],
        our_clan_tag: str,
        live_roster_tags: Set[str]
    ) -> LeagueStats:
        """
        Fold war reports into per-player stats and a clan summary.

        Args:
            reports: War reports of the league, any order
            our_clan_tag: Tag of the clan we report on
            live_roster_tags: Only these players appear in the result

        Returns:
            LeagueStats sorted by net stars, highest first
        """
        stats: Dict[str, WarParticipationStat] = {}

        for report in reports:
            if report.state not in TALLIED_STATES:
                continue

            sides = self._split_sides(report, our_clan_tag)
            if sides is None:
                self.logger.debug(f"Skipping war {report.clan.tag} vs {report.opponent.tag}: clan not found")
                continue
            ours, enemy = sides

            for member in ours.members:
                stat = stats.get(member.tag)
                if stat is None:
                    stat = stats[member.tag] = WarParticipationStat(tag=member.tag)
                stat.name = member.name or stat.name
                stat.wars_participated += 1
                stat.attacks += len(member.attacks)
                for attack in member.attacks:
                    stat.stars += attack.stars
                    stat.destruction += attack.destructionPercentage
                if report.state == STATE_WAR_ENDED and not member.attacks:
                    stat.missed_attacks += 1

            for member in enemy.members:
                for attack in member.attacks:
                    defender = stats.get(attack.defenderTag)
                    if defender is None:
                        continue
                    defender.defenses += 1
                    defender.stars_conceded += attack.stars

        players = [s for s in stats.values() if s.tag in live_roster_tags]
        players.sort(key=lambda s: s.net_stars, reverse=True)

        return LeagueStats(
            players=players,
            summary=ClanWarLeagueSummary.from_stats(players),
        )

    @staticmethod
    def _split_sides(report: WarReport, our_clan_tag: str) -> Optional[tuple[WarClan, WarClan]]:
        if report.clan.tag == our_clan_tag:
            return report.clan, report.opponent
        if report.opponent.tag == our_clan_tag:
            return report.opponent, report.clan
        return None
