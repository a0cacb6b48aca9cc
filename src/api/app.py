"""
HTTP API for the clan tracker.

Endpoints:
- /update-data        start a roster sync in the background (202)
- /tracked-clan-data  cached roster, highest role first
- /player/{tag}       full stored record for one player
- /cwl-stats          war league stats computed from live API data
- /health             database health
"""

import asyncio
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from config.tracker_config import TrackerConfig, normalize_tag
from database.database import DatabaseManager
from database.enums import role_display_name
from database.services.player_store import ORDER_BY_ROLE, PlayerStore
from src.clients.coc_client import ClashAPIClient
from src.errors import (
    LeagueDataUnavailable,
    NotInLeague,
    RecordNotFound,
    StoreFailure,
    UpstreamUnavailable,
)
from src.logging import get_logger
from src.services.roster_update import RosterUpdateService
from src.services.war_league import WarLeagueAggregator

EMPTY_DATABASE_MESSAGE = "Database not found. Please run the /update-data endpoint first."


def create_app(
    config: Optional[TrackerConfig] = None,
    db: Optional[DatabaseManager] = None,
    client: Optional[ClashAPIClient] = None,
) -> FastAPI:
    """
    Build the FastAPI application and its services.

    Args:
        config: Tracker configuration, loaded from the environment if omitted
        db: Database manager, built from config.database_url if omitted
        client: Clash of Clans API client, built from config if omitted
    """
    config = config or TrackerConfig.from_env()
    db = db or DatabaseManager(config.database_url)
    client = client or ClashAPIClient(config)
    logger = get_logger()
    logger.configure(verbose=config.verbose)

    db.create_tables()
    db.ensure_columns()

    store = PlayerStore(db)

    app = FastAPI(title="Clan Tracker")
    app.state.config = config
    app.state.db = db
    app.state.client = client
    app.state.store = store
    app.state.update_service = RosterUpdateService(config, client=client, store=store)
    app.state.war_league = WarLeagueAggregator(config, client=client)

    _register_error_handlers(app)
    _register_routes(app)
    return app


# ─── Dependencies ─────────────────────────────────────────────────


def get_store(request: Request) -> PlayerStore:
    return request.app.state.store


def get_client(request: Request) -> ClashAPIClient:
    return request.app.state.client


def get_update_service(request: Request) -> RosterUpdateService:
    return request.app.state.update_service


def get_war_league(request: Request) -> WarLeagueAggregator:
    return request.app.state.war_league


# ─── Error handling ───────────────────────────────────────────────


def _register_error_handlers(app: FastAPI) -> None:
    logger = get_logger()

    @app.exception_handler(RecordNotFound)
    async def record_not_found(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})

    @app.exception_handler(StoreFailure)
    async def store_failure(request: Request, exc: StoreFailure):
        logger.error(str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to read database."},
        )

    @app.exception_handler(UpstreamUnavailable)
    async def upstream_unavailable(request: Request, exc: UpstreamUnavailable):
        logger.error(f"Upstream failure on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Failed to fetch data from the Clash of Clans API."},
        )


# ─── Routes ───────────────────────────────────────────────────────


def _register_routes(app: FastAPI) -> None:

    @app.api_route("/update-data", methods=["GET", "POST"], status_code=status.HTTP_202_ACCEPTED)
    async def update_data(
        background_tasks: BackgroundTasks,
        service: RosterUpdateService = Depends(get_update_service),
    ):
        """Start a roster sync. Returns at once; progress is only visible in the logs."""
        background_tasks.add_task(service.run_in_background)
        return {
            "message": "Update process started. This may take a moment. "
                       "Check server console for progress."
        }

    @app.get("/tracked-clan-data")
    async def tracked_clan_data(
        live: bool = False,
        store: PlayerStore = Depends(get_store),
        client: ClashAPIClient = Depends(get_client),
    ):
        """Cached roster ordered by highest role; live=true hides departed players."""
        players = await asyncio.to_thread(store.list, ORDER_BY_ROLE)
        if not players:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": EMPTY_DATABASE_MESSAGE},
            )

        if live:
            members = await asyncio.to_thread(client.fetch_clan_members)
            live_tags = {m.tag for m in members}
            players = [p for p in players if p.tag in live_tags]

        return [
            {
                "tag": p.tag,
                "name": p.name,
                "currentRoleName": role_display_name(p.role),
                "highestRoleName": role_display_name(p.highest_role),
                "sortOrder": p.sort_order,
                "trophies": p.trophies,
                "lastSeenActive": p.to_dict()["lastSeenActive"],
            }
            for p in players
        ]

    @app.get("/player/{tag}")
    async def player(tag: str, store: PlayerStore = Depends(get_store)):
        """Full stored record for one player. The tag may omit its leading '#'."""
        player_tag = normalize_tag(tag)
        record = await asyncio.to_thread(store.get, player_tag)
        if record is None:
            raise RecordNotFound(player_tag)
        return record.to_dict()

    @app.get("/cwl-stats")
    async def cwl_stats(war_league: WarLeagueAggregator = Depends(get_war_league)):
        """War league stats for players currently in the clan."""
        try:
            stats = await war_league.collect()
        except NotInLeague as e:
            return {"status": "notInLeague", "message": str(e)}
        except LeagueDataUnavailable as e:
            return {"status": "leagueDataUnavailable", "message": str(e)}
        return stats.to_dict()

    @app.get("/health")
    async def health(request: Request):
        healthy = await asyncio.to_thread(request.app.state.db.health_check)
        if not healthy:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unhealthy"},
            )
        return {"status": "ok"}
