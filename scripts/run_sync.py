"""
Run one roster sync cycle from the command line and wait for it.

Usage:
    python -m scripts.run_sync
"""

import asyncio
import sys


async def run():
    from config import TrackerConfig
    from database import get_db_manager
    from src.errors import ClanTrackerError
    from src.logging import get_logger
    from src.services import RosterUpdateService

    logger = get_logger()
    config = TrackerConfig.from_env()
    logger.configure(verbose=config.verbose)

    db = get_db_manager()
    db.create_tables()
    db.ensure_columns()

    service = RosterUpdateService(config)
    try:
        outcome = await service.run_cycle()
    except ClanTrackerError as e:
        logger.sync_failed(e)
        return 1

    print(f"\n📊 {outcome}")
    return 0 if not outcome.failed else 2


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
