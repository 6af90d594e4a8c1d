"""
Database access for the Portfolio API

Each record type lives in its own MongoDB collection, named after the
lowercased schema class:
- Profile        -> "profile"        (singleton document)
- Stat           -> "stat"           (singleton document holding the list)
- AboutSection   -> "aboutsection"   (singleton document)
- Project        -> "project"
- AnalyticsEvent -> "analyticsevent"
- Session        -> "session"        (_id is the client session id)
- Admin          -> "admin"
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

import settings
from exceptions import StorageFailure
from logger import get_logger

logger = get_logger(__name__)

PROFILE = "profile"
STAT = "stat"
ABOUT = "aboutsection"
PROJECT = "project"
EVENT = "analyticsevent"
SESSION = "session"
ADMIN = "admin"
# Sentinels for one-time seeding of non-singleton collections
SEED = "seed"

# _id of singleton content documents
SINGLETON_ID = "default"

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    """Process-wide client; pymongo pools connections internally."""
    global _client
    if _client is None:
        _client = MongoClient(
            settings.DATABASE_URL,
            serverSelectionTimeoutMS=settings.DATABASE_TIMEOUT_MS,
            connectTimeoutMS=settings.DATABASE_TIMEOUT_MS,
            socketTimeoutMS=settings.DATABASE_TIMEOUT_MS,
        )
        logger.info("MongoDB client created")
    return _client


def get_database() -> Database:
    return get_client()[settings.DATABASE_NAME]


def close_client():
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB client closed")


def utcnow() -> datetime:
    """Naive UTC, matching what pymongo hands back from BSON dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ensure_indexes(db: Database):
    with storage_errors("ensure_indexes"):
        db[ADMIN].create_index([("email", ASCENDING)], unique=True)
        db[PROJECT].create_index([("published", ASCENDING), ("order", ASCENDING)])
        db[PROJECT].create_index([("view_count", DESCENDING)])
        db[EVENT].create_index([("timestamp", DESCENDING)])
        db[EVENT].create_index([("visitor_id", ASCENDING)])
        db[EVENT].create_index([("page", ASCENDING)])
        db[SESSION].create_index([("start_time", DESCENDING)])


@contextmanager
def storage_errors(operation: str):
    """Translate driver errors into StorageFailure."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"Storage operation '{operation}' failed: {e}")
        raise StorageFailure(f"{operation} failed", operation=operation, cause=e) from e


def to_object_id(value: Optional[str]) -> Optional[ObjectId]:
    """Return an ObjectId for server-assigned ids, None for anything else."""
    if isinstance(value, ObjectId):
        return value
    if value and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def normalize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Expose Mongo's _id as a string id."""
    if doc is None:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(exclude={"id"})
    else:
        data_dict = {k: v for k, v in data.items() if k != "id"}
    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    limit: Optional[int] = None,
    projection: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [normalize(doc) for doc in cursor]


def list_collections(db: Database) -> List[str]:
    with storage_errors("list_collections"):
        return db.list_collection_names()
