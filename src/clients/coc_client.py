"""
Clash of Clans API Client - Low-level wrapper for the official game API.

This client handles:
- Bearer token authentication
- Tag encoding ('#' -> '%23') in URLs
- Retry with exponential backoff for transient failures (429, 5xx, network)
- Translating failures into UpstreamUnavailable / NotInLeague

Calls are blocking; async services run them through asyncio.to_thread.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception
)

from config.tracker_config import TrackerConfig
from src.clients.models import LeagueGroup, MemberSummary, PlayerSnapshot, WarReport
from src.errors import NotInLeague, UpstreamUnavailable


def encode_tag(tag: str) -> str:
    """URL-encode a tag for use in a path segment."""
    return quote(tag, safe="")


def _is_transient(exc: BaseException) -> bool:
    """Retry network errors, rate limiting and server errors only."""
    if not isinstance(exc, UpstreamUnavailable):
        return False
    return exc.status_code is None or exc.status_code == 429 or exc.status_code >= 500


class ClashAPIClient:
    """
    Client for the Clash of Clans API.

    Usage:
        client = ClashAPIClient(TrackerConfig.from_env())
        members = client.fetch_clan_members()
        snapshot = client.fetch_player(members[0].tag)
    """

    def __init__(self, config: TrackerConfig, session: Optional[requests.Session] = None):
        """
        Initialize the API client.

        Args:
            config: Tracker configuration (token, clan tag, base URL, timeout)
            session: Optional requests session (shared connection pool)
        """
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.request_timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Authorization": f"Bearer {config.api_key}",
        })

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        reraise=True
    )
    def _get(self, path: str) -> Dict[str, Any]:
        """
        GET a JSON document from the API.

        Raises:
            UpstreamUnavailable: On network failure, non-2xx status or bad JSON
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Request to {path} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.ok:
            reason = payload.get("reason") if isinstance(payload, dict) else None
            raise UpstreamUnavailable(
                f"{path} returned HTTP {response.status_code}: {reason or response.reason}",
                status_code=response.status_code,
                reason=reason,
            )

        if not isinstance(payload, dict):
            raise UpstreamUnavailable(f"{path} returned an unexpected payload")
        return payload

    def fetch_clan_members(self, clan_tag: Optional[str] = None) -> List[MemberSummary]:
        """
        Fetch the clan's current member list.

        Raises:
            UpstreamUnavailable: If the clan or its member list cannot be fetched
        """
        clan_tag = clan_tag or self.config.clan_tag
        data = self._get(f"/clans/{encode_tag(clan_tag)}")
        if "memberList" not in data:
            raise UpstreamUnavailable("Could not fetch clan member list.")
        try:
            return [MemberSummary(**m) for m in data["memberList"]]
        except ValidationError as e:
            raise UpstreamUnavailable(f"Malformed clan member list: {e}") from e

    def fetch_player(self, tag: str) -> PlayerSnapshot:
        """Fetch a player's detailed profile."""
        data = self._get(f"/players/{encode_tag(tag)}")
        try:
            return PlayerSnapshot(**data)
        except ValidationError as e:
            raise UpstreamUnavailable(f"Malformed player data for {tag}: {e}") from e

    def fetch_league_group(self, clan_tag: Optional[str] = None) -> LeagueGroup:
        """
        Fetch the clan's current war league group.

        Raises:
            NotInLeague: If the clan is not currently in a league
            UpstreamUnavailable: For any other failure
        """
        clan_tag = clan_tag or self.config.clan_tag
        try:
            data = self._get(f"/clans/{encode_tag(clan_tag)}/currentwar/leaguegroup")
        except UpstreamUnavailable as e:
            if e.status_code == 404:
                raise NotInLeague("Clan is not currently in a war league.") from e
            raise

        if data.get("state") == "notInWar":
            raise NotInLeague("Clan is not currently in a war league.")
        try:
            return LeagueGroup(**data)
        except ValidationError as e:
            raise UpstreamUnavailable(f"Malformed league group: {e}") from e

    def fetch_war(self, war_tag: str) -> WarReport:
        """Fetch a single league war by its war tag."""
        data = self._get(f"/clanwarleagues/wars/{encode_tag(war_tag)}")
        try:
            return WarReport(**data)
        except ValidationError as e:
            raise UpstreamUnavailable(f"Malformed war data for {war_tag}: {e}") from e
