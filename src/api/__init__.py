"""
API package - REST endpoints for the clan tracker.

Routes:
- /update-data - Start a roster sync
- /tracked-clan-data - Cached roster
- /player/{tag} - Single player record
- /cwl-stats - War league stats
- /health - Service health checks
"""

from src.api.app import create_app

__all__ = ["create_app"]
