"""
MongoDB Connection Utility

MongoDB stores everything Placify needs:
- users: students, recruiters, admins (provisioned by the auth service)
- jobs: postings created by recruiters
- applications: one document per (job, student) with its status history
- notifications: user-facing messages, expired by a TTL index
"""
import logging

from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.collection import Collection
from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the placify database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection. Use the COLLECTIONS constants for names."""
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "jobs": "jobs",
    "applications": "applications",
    "notifications": "notifications",
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # One application per (job, student). This is the real duplicate guard,
    # the find-then-insert check in the route is not atomic.
    db[COLLECTIONS["applications"]].create_index(
        [("job_id", ASCENDING), ("student_id", ASCENDING)],
        unique=True,
        name="uniq_job_student"
    )
    db[COLLECTIONS["applications"]].create_index([("student_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["applications"]].create_index([("job_id", ASCENDING), ("status", ASCENDING)])

    db[COLLECTIONS["jobs"]].create_index("created_by")
    db[COLLECTIONS["jobs"]].create_index("created_at")
    db[COLLECTIONS["jobs"]].create_index([("expires_at", ASCENDING), ("status", ASCENDING)])

    db[COLLECTIONS["users"]].create_index("email", unique=True)

    db[COLLECTIONS["notifications"]].create_index([("user_id", ASCENDING), ("read", ASCENDING), ("created_at", DESCENDING)])
    # TTL: documents vanish once expires_at passes
    db[COLLECTIONS["notifications"]].create_index("expires_at", expireAfterSeconds=0)

    logger.info("MongoDB indexes created successfully")
