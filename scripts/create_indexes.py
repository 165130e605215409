"""
Database Index Creation Script

Creates the indexes the attendance service relies on, including the
unique indexes that keep surveys, responses and completions single-shot.
Run this script after deployment or when setting up a new database.
"""

import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient

from ridehub.config import settings
from ridehub.database import create_indexes as create_service_indexes
from ridehub.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


async def create_indexes():
    """Create all necessary indexes for optimal query performance."""
    client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
    db = client[settings.mongodb_database]

    logger.info(f"Creating indexes on {settings.mongodb_database}...")
    try:
        await create_service_indexes(db)
        logger.info("All indexes created successfully!")
    finally:
        client.close()


if __name__ == "__main__":
    setup_logging("INFO")
    asyncio.run(create_indexes())
