"""
Database helpers

Thin layer over pymongo shared by every resource module. Collections are
named after the lowercased resource ("product", "category", "order", ...).
Documents are addressed by their own string `id` (coupons by `code`); the
Mongo `_id` is kept out of every response.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection

from config import settings
from errors import AppError

logger = logging.getLogger(__name__)

NO_ID = {"_id": 0}

_client: Optional[MongoClient] = None
db = None

if settings.DATABASE_URL and settings.DATABASE_NAME:
    _client = MongoClient(settings.DATABASE_URL)
    db = _client[settings.DATABASE_NAME]


def get_collection(name: str) -> Collection:
    if db is None:
        raise AppError("Database not configured", 500)
    return db[name]


def serialize_doc(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    doc.pop("_id", None)
    return doc


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    else:
        data = dict(data)
    get_collection(collection_name).insert_one(data)
    return serialize_doc(data)


def find_one(collection_name: str, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return get_collection(collection_name).find_one(filter_dict, NO_ID)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort_by: str = "created_at", order: str = "desc",
                  limit: int = 0) -> List[Dict[str, Any]]:
    direction = ASCENDING if order == "asc" else DESCENDING
    cursor = get_collection(collection_name).find(filter_dict or {}, NO_ID).sort(sort_by, direction)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_page(collection_name: str, filter_dict: Dict[str, Any], page: int = 1, limit: int = 20,
             sort_by: str = "created_at", order: str = "desc") -> Tuple[List[Dict[str, Any]], int]:
    """Returns one page of documents plus the total match count."""
    col = get_collection(collection_name)
    direction = ASCENDING if order == "asc" else DESCENDING
    cursor = (
        col.find(filter_dict, NO_ID)
        .sort(sort_by, direction)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    items = list(cursor)
    total = col.count_documents(filter_dict)
    return items, total


def update_document(collection_name: str, filter_dict: Dict[str, Any], changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    col = get_collection(collection_name)
    if changes:
        res = col.update_one(filter_dict, {"$set": changes})
        if res.matched_count == 0:
            return None
    return col.find_one(filter_dict, NO_ID)


def delete_document(collection_name: str, filter_dict: Dict[str, Any]) -> bool:
    res = get_collection(collection_name).delete_one(filter_dict)
    return res.deleted_count > 0


def ensure_indexes() -> None:
    if db is None:
        logger.warning("Database not configured, skipping index creation")
        return
    for name in ("product", "category", "order", "banner", "flashsale"):
        db[name].create_index("id", unique=True)
    db["category"].create_index("slug", unique=True)
    db["coupon"].create_index("code", unique=True)
    db["admin"].create_index("email", unique=True)
    db["admin"].create_index("admin_id", unique=True)
    db["product"].create_index([("category_id", ASCENDING), ("created_at", DESCENDING)])
    db["order"].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    db["flashsale"].create_index([("product_id", ASCENDING), ("is_active", ASCENDING)])
    logger.info("Indexes ensured on %s", db.name)
