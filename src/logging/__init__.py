"""
Logging package - Universal clan tracker logger.

Usage:
    from src.logging import get_logger

    logger = get_logger()
    logger.info("Starting sync...")
    logger.success("Completed!")
"""

from src.logging.logger import get_logger, TrackerLogger

__all__ = [
    "get_logger",
    "TrackerLogger",
]
