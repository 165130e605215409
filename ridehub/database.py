"""
RideHub Database Module

MongoDB and Redis connection management.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING, DESCENDING

from ridehub.config import settings


# =============================================================================
# MongoDB Connection
# =============================================================================

class MongoDB:
    """MongoDB connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None


mongo = MongoDB()


async def create_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes the attendance core relies on.

    The unique indexes double as concurrency guards: one survey per ride,
    one response per respondent and one completion per (ride, user).
    """
    # Profiles
    await db.users.create_index("user_id", unique=True)

    # Membership store (read-only, but queried by ride and by user)
    await db.ride_members.create_index([("ride_id", ASCENDING), ("status", ASCENDING)])
    await db.ride_members.create_index([("user_id", ASCENDING), ("status", ASCENDING)])
    await db.ride_groups.create_index("ride_id", unique=True)
    await db.ride_groups.create_index("event_id")
    await db.events.create_index("event_id", unique=True)
    await db.events.create_index("date_time")

    # Surveys
    await db.ride_attendance_surveys.create_index("survey_id", unique=True)
    await db.ride_attendance_surveys.create_index("ride_id", unique=True)
    await db.ride_attendance_surveys.create_index([
        ("status", ASCENDING),
        ("survey_deadline", ASCENDING),
    ])
    await db.ride_attendance_surveys.create_index([
        ("status", ASCENDING),
        ("reminder_sent_at", ASCENDING),
        ("survey_sent_at", ASCENDING),
    ])

    # Responses
    await db.ride_attendance_responses.create_index("response_id", unique=True)
    await db.ride_attendance_responses.create_index(
        [("survey_id", ASCENDING), ("respondent_user_id", ASCENDING)],
        unique=True,
        name="unique_response_per_respondent",
    )

    # Completions
    await db.ride_completions.create_index("completion_id", unique=True)
    await db.ride_completions.create_index(
        [("ride_id", ASCENDING), ("user_id", ASCENDING)],
        unique=True,
        name="unique_completion_per_ride_user",
    )
    await db.ride_completions.create_index("user_id")

    # Ratings
    await db.user_ratings.create_index("rating_id", unique=True)
    await db.user_ratings.create_index("rated_user_id")
    await db.user_ratings.create_index(
        [
            ("rater_user_id", ASCENDING),
            ("rated_user_id", ASCENDING),
            ("ride_id", ASCENDING),
        ],
        unique=True,
        name="unique_rating_per_ride",
    )

    # Payments and meeting votes
    await db.ride_payments.create_index("ride_id")
    await db.meeting_votes.create_index(
        [
            ("ride_id", ASCENDING),
            ("user_id", ASCENDING),
            ("vote_option", ASCENDING),
        ],
        unique=True,
    )

    # Notifications
    await db.notifications.create_index("notification_id", unique=True)
    await db.notifications.create_index([("user_id", ASCENDING), ("read", ASCENDING)])
    await db.notifications.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])


async def init_mongodb():
    """Initialize MongoDB connection and create indexes."""
    mongo.client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
    mongo.db = mongo.client[settings.mongodb_database]
    await create_indexes(mongo.db)


async def close_mongodb():
    """Close MongoDB connection."""
    if mongo.client:
        mongo.client.close()


def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    if mongo.db is None:
        raise RuntimeError("Database not initialized")
    return mongo.db


@asynccontextmanager
async def start_transaction() -> AsyncIterator[AsyncIOMotorClientSession]:
    """
    Open a session with a running multi-document transaction.

    Commits when the block exits normally and aborts if it raises.
    Requires MongoDB to run as a replica set.
    """
    if mongo.client is None:
        raise RuntimeError("Database not initialized")

    async with await mongo.client.start_session() as session:
        async with session.start_transaction():
            yield session


# =============================================================================
# Redis Connection
# =============================================================================

class RedisClient:
    """Redis connection manager."""

    client: Optional[redis.Redis] = None


redis_client = RedisClient()


async def init_redis():
    """Initialize Redis connection."""
    redis_client.client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=30,
        socket_connect_timeout=5,
        retry_on_timeout=True,
        socket_keepalive=True
    )


async def close_redis():
    """Close Redis connection."""
    if redis_client.client:
        await redis_client.client.aclose()


def get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if redis_client.client is None:
        raise RuntimeError("Redis not initialized")
    return redis_client.client


# =============================================================================
# Combined Initialization
# =============================================================================

async def init_db():
    """Initialize all database connections."""
    await init_mongodb()
    await init_redis()


async def close_db():
    """Close all database connections."""
    await close_mongodb()
    await close_redis()
