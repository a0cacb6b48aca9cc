"""
Main backend application entry point.

Starts the clan tracker API:
1. Loads configuration from the environment (.env)
2. Checks the database connection
3. Serves the REST API with uvicorn

Visit /update-data to refresh the clan data.
"""

import os
import sys

import uvicorn

from config.tracker_config import TrackerConfig
from database import DatabaseManager, set_db_manager
from src.api import create_app
from src.logging import get_logger


def main():
    """Main entry point for backend API service."""
    logger = get_logger()

    try:
        config = TrackerConfig.from_env()
    except ValueError as e:
        logger.error(f"FATAL ERROR: {e}")
        sys.exit(1)

    db = DatabaseManager(config.database_url)
    set_db_manager(db)
    if not db.health_check():
        logger.error("Database connection failed! Please check DATABASE_URL.")
        sys.exit(1)

    logger.success("Database connection healthy!")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    app = create_app(config=config, db=db)

    logger.info(f"Server listening at http://{host}:{port}")
    logger.info(f"Visit http://localhost:{port}/update-data to refresh the clan data.")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
