"""
MongoDB access helpers.

Collections:
- user     -> credential store
- channel  -> one channel per user (unique user_id)
- video    -> videos with embedded comments
"""
import logging
import math
import re
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from errors import NotFound
from settings import settings

logger = logging.getLogger(__name__)

NEWEST_FIRST: List[Tuple[str, int]] = [("created_at", DESCENDING), ("_id", DESCENDING)]


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    logger.info("Connecting to MongoDB database %s", settings.DATABASE_NAME)
    return MongoClient(settings.DATABASE_URL, tz_aware=True)


def get_db() -> Database:
    """FastAPI dependency returning the application database."""
    return get_client()[settings.DATABASE_NAME]


def ensure_indexes(db: Database) -> None:
    db["user"].create_index([("username", ASCENDING)], unique=True)
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["channel"].create_index([("user_id", ASCENDING)], unique=True)
    db["video"].create_index([("user_id", ASCENDING)])
    db["video"].create_index([("channel_id", ASCENDING)])
    db["video"].create_index([("created_at", DESCENDING)])


# -------------------- Helpers --------------------

def objid(id_str: Any, resource: str = "Resource") -> ObjectId:
    """Parse an id, treating malformed ids the same as missing documents."""
    if isinstance(id_str, ObjectId):
        return id_str
    try:
        return ObjectId(str(id_str))
    except (InvalidId, TypeError):
        raise NotFound(f"{resource} not found")


def _convert(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return to_str_id(value)
    if isinstance(value, (list, tuple)):
        return [_convert(v) for v in value]
    return value


def to_str_id(doc):
    if not doc:
        return doc
    d = {**doc}
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    # ObjectIds and datetimes nested anywhere become JSON friendly
    for k, v in list(d.items()):
        d[k] = _convert(v)
    return d


def search_collection(
    collection,
    search_text: Optional[str] = None,
    search_fields: Sequence[str] = (),
    filters: Optional[Dict[str, Any]] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
    limit: int = 10,
    page: int = 1,
) -> Dict[str, Any]:
    """
    Case-insensitive text search over `search_fields` plus exact-match
    `filters`, returning one page of raw documents and pagination info.
    """
    query: Dict[str, Any] = {}
    if search_text and search_fields:
        pattern = re.escape(search_text)
        query["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in search_fields]
    if filters:
        query.update(filters)

    skip = (page - 1) * limit
    cursor = collection.find(query).sort(sort or NEWEST_FIRST).skip(skip).limit(limit)
    results = list(cursor)
    total = collection.count_documents(query)

    return {
        "results": results,
        "pagination": {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit) if limit else 0,
            "has_more": skip + len(results) < total,
        },
    }
