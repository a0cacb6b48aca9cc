"""
Configuration package.

Holds the TrackerConfig value that is passed into the sync and
war league services.
"""

from config.tracker_config import TrackerConfig, normalize_tag

__all__ = ["TrackerConfig", "normalize_tag"]
