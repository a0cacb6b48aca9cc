"""
Roster Sync Service

This module merges one fetch cycle of clan member data into the stored
player records. For every member it fetches the detailed profile, loads
the stored record, and writes back a merged record that:

- keeps the highest role ever observed (rank never decreases)
- moves last_seen_active only when donations or exp level changed
- stores a sanitized display name

Members are processed concurrently, capped by a semaphore so the
rate-limited upstream API is never hit by more than
config.max_concurrent_requests requests at once. A failure for one
member is logged and skipped; it never aborts the batch.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from config.tracker_config import TrackerConfig
from database.enums import role_with_higher_rank
from database.models.player import Player
from database.services.player_store import PlayerStore
from src.clients.models import (
    MemberSummary,
    PlayerSnapshot,
    SIEGE_DONATIONS_ACHIEVEMENT,
    SPELL_DONATIONS_ACHIEVEMENT,
    TROOP_DONATIONS_ACHIEVEMENT,
)
from src.errors import ClanTrackerError
from src.logging import get_logger
from src.utils.sanitize import sanitize_name


FetchSnapshot = Callable[[str], PlayerSnapshot]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncOutcome:
    """
    Result of one roster sync cycle.

    Attributes:
        clan_tag: Clan that was synced
        updated: Tags whose records were written
        failed: Tag -> reason for members that were skipped
        started_at: When the cycle started
        completed_at: When the cycle finished
    """
    clan_tag: str
    updated: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        end = self.completed_at or _utcnow()
        return (end - self.started_at).total_seconds()

    def __str__(self) -> str:
        return (
            f"SyncOutcome({self.clan_tag}): "
            f"{len(self.updated)} updated, {len(self.failed)} failed"
        )


class RosterSyncService:
    """
    Merges fetched member data into stored player records.

    Usage:
        service = RosterSyncService(config)
        outcome = await service.synchronize(
            members=client.fetch_clan_members(),
            fetch_snapshot=client.fetch_player,
            store=PlayerStore()
        )
        print(outcome)
    """

    def __init__(
        self,
        config: TrackerConfig,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the roster sync service.

        Args:
            config: Tracker configuration (clan tag, concurrency cap)
            clock: Optional source of "now", defaults to UTC wall clock
        """
        self.config = config
        self.clock = clock or _utcnow
        self.logger = get_logger()

    def merge_member(
        self,
        member: MemberSummary,
        snapshot: PlayerSnapshot,
        existing: Optional[Player]
    ) -> Player:
        """
        Build the merged record for one member.

        Args:
            member: Entry from the clan member list (tag, name, current role)
            snapshot: Freshly fetched player profile
            existing: Stored record for the tag, or None if new

        Returns:
            Player ready to upsert
        """
        previous_highest = existing.highest_role if existing else member.role
        highest_role = role_with_higher_rank(previous_highest, member.role)

        if existing is None:
            last_seen_active = self.clock()
        elif (existing.donations == snapshot.donations
              and existing.exp_level == snapshot.expLevel):
            # Legacy rows may predate the column
            last_seen_active = existing.last_seen_active or self.clock()
        else:
            last_seen_active = self.clock()

        return Player(
            tag=member.tag,
            name=sanitize_name(member.name),
            role=member.role,
            highest_role=highest_role,
            town_hall_level=snapshot.townHallLevel,
            exp_level=snapshot.expLevel,
            trophies=snapshot.trophies,
            best_trophies=snapshot.bestTrophies,
            war_stars=snapshot.warStars,
            donations=snapshot.donations,
            donations_received=snapshot.donationsReceived,
            troop_donations=snapshot.achievement_value(TROOP_DONATIONS_ACHIEVEMENT),
            spell_donations=snapshot.achievement_value(SPELL_DONATIONS_ACHIEVEMENT),
            siege_donations=snapshot.achievement_value(SIEGE_DONATIONS_ACHIEVEMENT),
            last_seen_active=last_seen_active,
        )

    async def synchronize(
        self,
        members: List[MemberSummary],
        fetch_snapshot: FetchSnapshot,
        store: PlayerStore
    ) -> SyncOutcome:
        """
        Merge one fetch cycle into the store.

        Args:
            members: Current clan member list
            fetch_snapshot: Blocking callable tag -> PlayerSnapshot; raises on failure
            store: Persistent store for player records

        Returns:
            SyncOutcome listing updated and skipped tags
        """
        outcome = SyncOutcome(clan_tag=self.config.clan_tag, started_at=self.clock())
        self.logger.sync_start(self.config.clan_tag, len(members))

        semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)
        await asyncio.gather(*[
            self._sync_member(member, fetch_snapshot, store, semaphore, outcome)
            for member in members
        ])

        outcome.completed_at = self.clock()
        self.logger.sync_complete(outcome)
        return outcome

    async def _sync_member(
        self,
        member: MemberSummary,
        fetch_snapshot: FetchSnapshot,
        store: PlayerStore,
        semaphore: asyncio.Semaphore,
        outcome: SyncOutcome
    ) -> None:
        """Fetch, merge and upsert a single member. Failures are recorded, not raised."""
        async with semaphore:
            self.logger.member_fetching(member.name, member.tag)
            try:
                snapshot = await asyncio.to_thread(fetch_snapshot, member.tag)
            except Exception as e:
                self._record_failure(member.tag, e, outcome)
                return

        try:
            existing = await asyncio.to_thread(store.get, member.tag)
            record = self.merge_member(member, snapshot, existing)
            await asyncio.to_thread(store.upsert, record)
        except Exception as e:
            self._record_failure(member.tag, e, outcome)
            return

        activity_changed = existing is None or existing.last_seen_active != record.last_seen_active
        self.logger.member_merged(member.tag, record.highest_role, activity_changed)
        outcome.updated.append(member.tag)

    def _record_failure(self, tag: str, error: Exception, outcome: SyncOutcome) -> None:
        """Log a skipped member and note it in the outcome."""
        if isinstance(error, ClanTrackerError):
            self.logger.member_fetch_failed(tag, str(error))
        else:
            self.logger.exception(f"Unexpected error syncing {tag}: {error!r}")
        outcome.failed[tag] = str(error) or type(error).__name__
