"""
Main application package for the Clan Tracker.

This is the core backend service providing:
- REST API endpoints (FastAPI)
- Roster sync and war league services
- Clash of Clans API integration
"""

__version__ = "0.1.0"
