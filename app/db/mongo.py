# app/db/mongo.py
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import motor.motor_asyncio as motor_asyncio
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING

from app.core.config import settings
from app.core.errors import ValidationFailed

logger = logging.getLogger(__name__)

USERS = "users"
JOBS = "jobs"
APPLICATIONS = "applications"
COMPANIES = "companies"

_mongo_client: Optional[motor_asyncio.AsyncIOMotorClient] = None


def get_mongo_client() -> motor_asyncio.AsyncIOMotorClient:
    """
    Returns a cached Motor client.
    """
    global _mongo_client
    if _mongo_client is None:
        _mongo_client = motor_asyncio.AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)
    return _mongo_client


def get_db():
    client = get_mongo_client()
    return client[settings.MONGODB_DB]


async def init_db():
    """Create the indexes the services rely on, unique constraints included."""
    db = get_db()
    await db[USERS].create_index("email", unique=True)
    await db[JOBS].create_index("posted_by")
    await db[JOBS].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    # one application per candidate per job
    await db[APPLICATIONS].create_index([("applicant", ASCENDING), ("job", ASCENDING)], unique=True)
    await db[APPLICATIONS].create_index([("job", ASCENDING), ("status", ASCENDING)])
    await db[APPLICATIONS].create_index([("applicant", ASCENDING), ("status", ASCENDING)])
    # one company per employer
    await db[COMPANIES].create_index("employer", unique=True)
    logger.info("MongoDB indexes ensured on database %s", settings.MONGODB_DB)


def close_db():
    global _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError) as exc:
        raise ValidationFailed(f"Invalid {label} format") from exc


def serialize(doc: Any) -> Any:
    """
    Convert a stored document into plain data: ``_id`` becomes ``id`` and
    every ObjectId (references included) becomes its hex string.
    """
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize(v) for v in doc]
    if isinstance(doc, dict):
        out = {}
        for k, v in doc.items():
            out["id" if k == "_id" else k] = serialize(v)
        return out
    return doc
