import motor.motor_asyncio
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING

from careerhub.utils.logging_config import get_logger

logger = get_logger(__name__)


class MongoService:
    """Process-scoped MongoDB connection, opened and closed by the app lifespan"""

    def __init__(self, uri: str, db_name: str):
        self.uri = uri
        self.db_name = db_name
        self.client = None
        self.db = None

    def connect(self):
        logger.info(f"Initializing MongoDB connection to database: {self.db_name}")
        self.client = motor.motor_asyncio.AsyncIOMotorClient(self.uri, tz_aware=True)
        self.db = self.client[self.db_name]
        logger.info("MongoDB client initialized successfully")

    def close(self):
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB client closed")
        self.client = None
        self.db = None

    # Collections
    @property
    def users(self):
        return self.db["users"]

    @property
    def resume_analyses(self):
        return self.db["resumeanalyses"]

    @property
    def chats(self):
        return self.db["chats"]

    @property
    def jobs(self):
        return self.db["jobs"]

    @property
    def cover_letters(self):
        return self.db["coverletters"]

    async def init_indexes(self):
        """Index initialization for collections."""
        logger.info("Starting database index initialization")

        try:
            await self.users.create_index([("email", ASCENDING)], unique=True)
            logger.debug("Created unique index on users.email")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug("Index on users.email already exists")
            else:
                logger.warning(f"Could not create unique index on users.email: {e}")

        try:
            await self.chats.create_index([("userId", ASCENDING)], unique=True)
            await self.resume_analyses.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
            await self.jobs.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
            await self.jobs.create_index([("reminderDate", ASCENDING)])
            await self.cover_letters.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
            logger.debug("Created per-user indexes")
        except Exception as e:
            logger.warning(f"Could not create some per-user indexes: {e}")

        logger.info("Database index initialization completed")


def to_object_id(value: str):
    """ObjectId for a hex string, or None when it is not one"""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def to_dict(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    for key in ("userId",):
        if key in doc and isinstance(doc[key], ObjectId):
            doc[key] = str(doc[key])
    return doc
