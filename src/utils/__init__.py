"""
Utils package - Shared utilities.

Contains:
- Run ID used to name log files
- Display name sanitizing
"""

from src.utils.run_id import get_run_id
from src.utils.sanitize import sanitize_name

__all__ = [
    "get_run_id",
    "sanitize_name",
]
