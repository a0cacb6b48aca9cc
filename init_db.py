"""
Database initialization script.

This script creates the players table and migrates older tables.

Usage:
    python init_db.py            # create tables
    python init_db.py --migrate  # add columns missing from an older players table
    python init_db.py --reset    # drop and recreate (deletes all data!)
"""

import sys
from database import DatabaseManager
from src.logging import get_logger

logger = get_logger()


def init_database():
    """Initialize the database by creating all tables."""
    logger.section("Database Initialization")

    try:
        db = DatabaseManager()

        if not db.health_check():
            logger.error("Database connection failed! Check DATABASE_URL in .env")
            sys.exit(1)

        db.create_tables()
        logger.success("'players' table created or already exists.")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        sys.exit(1)


def migrate_database():
    """Add columns introduced after the players table was first created."""
    logger.section("Running migration...")

    try:
        db = DatabaseManager()
        added = db.ensure_columns()
    except Exception as e:
        logger.error(f"Error migrating database: {e}")
        sys.exit(1)

    if added:
        for column in added:
            logger.success(f"Column '{column}' added successfully.")
    else:
        logger.success("All columns already exist.")


def reset_database():
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This will delete all data!
    """
    logger.section("⚠️  DATABASE RESET WARNING ⚠️")
    print("\nThis will DELETE ALL DATA in your database!")
    print("Are you sure you want to continue? (yes/no): ", end="")

    confirmation = input().strip().lower()

    if confirmation != 'yes':
        logger.info("Reset cancelled.")
        return

    try:
        db = DatabaseManager()
        db.drop_tables()
        db.create_tables()
        logger.success("Database reset complete!")

    except Exception as e:
        logger.error(f"Error resetting database: {e}")
        sys.exit(1)


def main():
    """Main function to handle command line arguments."""
    if len(sys.argv) > 1 and sys.argv[1] == '--reset':
        reset_database()
    elif len(sys.argv) > 1 and sys.argv[1] == '--migrate':
        migrate_database()
    else:
        init_database()


if __name__ == "__main__":
    main()
