from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from config import settings
from errors import StoreError

logger = logging.getLogger(__name__)

USERS = "user"
PRODUCTS = "product"
ORDERS = "order"

# Newest first; _id breaks ties between documents created in the same millisecond
NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(settings.DATABASE_URL, tz_aware=True)
        _db = _client[settings.DATABASE_NAME]
    return _db


async def init_db() -> None:
    """Connect, verify the server answers and create the indexes we rely on.

    Any failure here is fatal for the process.
    """
    db = await get_db()
    await db.command("ping")
    await db[USERS].create_index([("email", ASCENDING)], unique=True)
    logger.info("MongoDB connected (database %s)", settings.DATABASE_NAME)


async def ping() -> bool:
    try:
        db = await get_db()
        await db.command("ping")
        return True
    except PyMongoError:
        return False


def close_db() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(id_str: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(id_str):
        return None
    return ObjectId(id_str)


def serialize_doc(doc: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


async def create_document(collection_name: str, data: dict[str, Any]) -> dict[str, Any]:
    db = await get_db()
    now = utcnow()
    data_with_meta = {**data, "created_at": now, "updated_at": now}
    try:
        result = await db[collection_name].insert_one(data_with_meta)
        inserted = await db[collection_name].find_one({"_id": result.inserted_id})
    except DuplicateKeyError:
        raise
    except PyMongoError as exc:
        raise StoreError(f"Failed to save {collection_name}: {exc}") from exc
    return serialize_doc(inserted) or {}


async def get_documents(
    collection_name: str,
    filter_dict: dict[str, Any] | None = None,
    sort: Sequence[tuple[str, int]] | None = None,
    projection: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    db = await get_db()
    try:
        cursor = db[collection_name].find(filter_dict or {}, projection, sort=list(sort) if sort else None)
        docs = []
        async for d in cursor:
            docs.append(serialize_doc(d))
    except PyMongoError as exc:
        raise StoreError(f"Failed to fetch {collection_name}: {exc}") from exc
    return docs


async def get_document(collection_name: str, filter_dict: dict[str, Any]) -> Optional[dict[str, Any]]:
    db = await get_db()
    try:
        doc = await db[collection_name].find_one(filter_dict)
    except PyMongoError as exc:
        raise StoreError(f"Failed to fetch {collection_name}: {exc}") from exc
    return serialize_doc(doc)


async def update_document(
    collection_name: str, filter_dict: dict[str, Any], updates: dict[str, Any]
) -> Optional[dict[str, Any]]:
    """Apply ``$set`` to the first match and return the updated document, or None."""
    db = await get_db()
    try:
        doc = await db[collection_name].find_one_and_update(
            filter_dict,
            {"$set": {**updates, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as exc:
        raise StoreError(f"Failed to update {collection_name}: {exc}") from exc
    return serialize_doc(doc)


async def delete_document(collection_name: str, filter_dict: dict[str, Any]) -> bool:
    db = await get_db()
    try:
        res = await db[collection_name].delete_one(filter_dict)
    except PyMongoError as exc:
        raise StoreError(f"Failed to delete {collection_name}: {exc}") from exc
    return res.deleted_count > 0
