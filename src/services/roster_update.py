"""
Roster Update Service

This module orchestrates one full roster update cycle:
1. Fetch the clan's member list from the Clash of Clans API
2. Merge every member into the player store (RosterSyncService)

It is also the hand-off point for the fire-and-forget trigger: the HTTP
endpoint schedules run_in_background() and returns immediately. The
caller gets no completion signal; success, failure and skipped members
are only reported through the logs.
"""

import asyncio
from typing import Optional

from config.tracker_config import TrackerConfig
from database.services.player_store import PlayerStore
from src.clients.coc_client import ClashAPIClient
from src.errors import ClanTrackerError
from src.logging import get_logger
from src.services.roster_sync import RosterSyncService, SyncOutcome


class RosterUpdateService:
    """
    Service that runs roster update cycles.

    Usage:
        service = RosterUpdateService(config)

        # Run and wait for the outcome
        outcome = await service.run_cycle()

        # Or hand off without waiting (errors are logged, never raised)
        background_tasks.add_task(service.run_in_background)
    """

    def __init__(
        self,
        config: TrackerConfig,
        client: Optional[ClashAPIClient] = None,
        store: Optional[PlayerStore] = None,
        sync_service: Optional[RosterSyncService] = None
    ):
        self.config = config
        self.client = client or ClashAPIClient(config)
        self.store = store or PlayerStore()
        self.sync_service = sync_service or RosterSyncService(config)
        self.logger = get_logger()
        self._cycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._cycle_lock.locked()

    async def run_cycle(self) -> SyncOutcome:
        """
        Run one sync cycle and wait for it to finish.

        Returns:
            SyncOutcome of the cycle

        Raises:
            UpstreamUnavailable: If the member list cannot be fetched at all
        """
        async with self._cycle_lock:
            self.logger.info("Starting data update process...")
            members = await asyncio.to_thread(self.client.fetch_clan_members)
            return await self.sync_service.synchronize(
                members=members,
                fetch_snapshot=self.client.fetch_player,
                store=self.store
            )

    async def run_in_background(self) -> Optional[SyncOutcome]:
        """
        Fire-and-forget entry point for the update trigger.

        A cycle that is already in progress is not started twice.
        Any failure is logged and swallowed since nobody awaits the result.
        """
        if self.is_running:
            self.logger.warning("Update already in progress, skipping this trigger")
            return None

        try:
            return await self.run_cycle()
        except ClanTrackerError as e:
            self.logger.sync_failed(e)
        except Exception as e:
            self.logger.exception(f"Unexpected error during the update process: {e}")
        return None
