import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_API_BASE_URL = "https://api.clashofclans.com/v1"
DEFAULT_DATABASE_URL = "sqlite:///clan_tracker.db"


def normalize_tag(tag: str) -> str:
    """Upper-case a clan/player tag and make sure it starts with '#'."""
    tag = tag.strip().upper()
    if not tag.startswith("#"):
        tag = f"#{tag}"
    return tag


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TrackerConfig:
    """Configuration for the clan tracker services."""
    api_key: str
    clan_tag: str
    base_url: str = DEFAULT_API_BASE_URL
    database_url: str = DEFAULT_DATABASE_URL
    max_concurrent_requests: int = 5
    request_timeout: float = 15.0
    verbose: bool = False

    def __post_init__(self):
        if not self.api_key or not self.clan_tag:
            raise ValueError(
                "COC_API_KEY and COC_CLAN_TAG must be set. Please set them in your .env file."
            )
        self.clan_tag = normalize_tag(self.clan_tag)
        if self.max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be at least 1")

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        """Load config from environment variables (and a .env file if present)."""
        load_dotenv()

        return cls(
            api_key=os.getenv("COC_API_KEY", "").strip(),
            clan_tag=os.getenv("COC_CLAN_TAG", "").strip(),
            base_url=os.getenv("COC_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            max_concurrent_requests=int(os.getenv("MAX_CONCURRENT_REQUESTS", "5")),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "15")),
            verbose=_env_bool("VERBOSE"),
        )
