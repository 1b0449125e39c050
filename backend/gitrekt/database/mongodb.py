"""
MongoDB connection manager
"""
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from gitrekt.core.config import settings
from gitrekt.utils.logger import logger


class MongoDB:
    client : AsyncIOMotorClient = None

db = MongoDB()

async def connect_db():
    db.client = AsyncIOMotorClient(settings.MONGODB_URL)
    logger.info("Connected to MongoDB")

async def close_db():
    if db.client is not None:
        db.client.close()
    logger.info("Closed MongoDB connection")

def get_database():
    return db.client[settings.MONGODB_DB_NAME]

async def ensure_indexes():
    """Create the unique and sweep indexes"""
    database = get_database()

    await database["tracked_repos"].create_index("repo_name", unique=True)
    await database["users"].create_index("github_id", unique=True)
    await database["events"].create_index(
        [
            ("repo_name", ASCENDING),
            ("deadline", ASCENDING),
            ("posted", ASCENDING),
            ("fixed", ASCENDING),
        ]
    )
    # One countdown per commit; audit Events without a deadline are exempt
    await database["events"].create_index(
        [("repo_name", ASCENDING), ("commit_sha", ASCENDING)],
        unique=True,
        partialFilterExpression={"deadline": {"$type": "date"}},
    )
    await database["pending_roasts"].create_index(
        [("status", ASCENDING), ("expires_at", ASCENDING)]
    )
