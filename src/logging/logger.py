import logging
from pathlib import Path
from typing import Optional, TYPE_CHECKING
from src.utils.run_id import get_run_id

if TYPE_CHECKING:
    from src.services.roster_sync import SyncOutcome
    from src.services.war_league import LeagueStats

_logger_instance: Optional['TrackerLogger'] = None


def get_logger() -> 'TrackerLogger':
    """Get the global logger instance. Creates one if needed."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = TrackerLogger()
    return _logger_instance


class TrackerLogger:
    """Universal logger for the clan tracker - console by default, file when verbose."""

    def __init__(self):
        self.run_id = get_run_id()
        self.log_file: Optional[Path] = None

        self.logger = logging.getLogger(f"clan_tracker.{self.run_id}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        self.logger.propagate = False

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter('%(asctime)s %(message)s', '%H:%M:%S'))
        self.logger.addHandler(console_handler)

    def configure(self, verbose: bool = False, log_dir: str | Path = "logs"):
        """Attach a DEBUG file handler when running verbose."""
        if not verbose or self.log_file is not None:
            return

        log_dir = Path(log_dir)
        log_dir.mkdir(exist_ok=True)
        self.log_file = log_dir / f"{self.run_id}.log"
        file_handler = logging.FileHandler(self.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
        self.logger.addHandler(file_handler)

    # ─── Semantic Methods (delegate to self.logger) ────────────────

    def info(self, msg: str):
        """General info message (INFO level)."""
        self.logger.info(msg)

    def debug(self, msg: str):
        """Debug message (DEBUG level)."""
        self.logger.debug(msg)

    def warning(self, msg: str):
        """Warning message (WARNING level)."""
        self.logger.warning(f"⚠️  {msg}")

    def error(self, msg: str):
        """Error message (ERROR level)."""
        self.logger.error(f"❌ {msg}")

    def exception(self, msg: str):
        """Error message with the active traceback."""
        self.logger.exception(f"❌ {msg}")

    def success(self, msg: str):
        """Success message (INFO level)."""
        self.logger.info(f"✅ {msg}")

    def section(self, title: str):
        """Section header with dividers."""
        self.logger.info(f"{'='*60}")
        self.logger.info(title)
        self.logger.info(f"{'='*60}")

    def detail(self, msg: str):
        """Indented detail message."""
        self.logger.info(f"   {msg}")

    # ─── Roster sync ───────────────────────────────────────────────

    def sync_start(self, clan_tag: str, member_count: int):
        self.section(f"Roster sync started for {clan_tag} ({member_count} members)")

    def member_fetching(self, name: str, tag: str):
        self.debug(f"Fetching data for {name} ({tag})...")

    def member_fetch_failed(self, tag: str, reason: str):
        self.warning(f"Could not fetch data for {tag}. Reason: {reason}")

    def member_merged(self, tag: str, highest_role: str, activity_changed: bool):
        marker = "active" if activity_changed else "idle"
        self.debug(f"   {tag}: highest role {highest_role}, {marker}")

    def sync_complete(self, outcome: 'SyncOutcome'):
        self.success(
            f"Data update process finished: {len(outcome.updated)} updated, "
            f"{len(outcome.failed)} failed ({outcome.duration_seconds:.1f}s)"
        )
        for tag, reason in outcome.failed.items():
            self.detail(f"• {tag}: {reason}")

    def sync_failed(self, error: Exception):
        self.error(f"An error occurred during the update process: {error}")

    # ─── War league ────────────────────────────────────────────────

    def league_wars_found(self, war_count: int):
        self.info(f"📋 Found {war_count} league wars.")

    def league_collected(self, stats: 'LeagueStats'):
        summary = stats.summary
        self.debug(
            f"League stats: {len(stats.players)} players, "
            f"{summary.total_attacks} attacks, {summary.total_missed_attacks} missed, "
            f"{summary.total_stars} stars"
        )
