"""
RigShop - MongoDB access

Все документы хранят строковый `id` (uuid4) как первичный ключ;
`_id` никогда не отдаётся наружу (проекция {'_id': 0}).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pymongo import MongoClient
from pymongo.database import Database

from .config import get_mongo_url, get_db_name

logger = logging.getLogger(__name__)

NO_ID = {'_id': 0}

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    """Lazily created process-wide client"""
    global _client
    if _client is None:
        _client = MongoClient(get_mongo_url())
    return _client


def get_db() -> Database:
    """Get MongoDB connection"""
    return get_client()[get_db_name()]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def find_by_id(db: Database, collection: str, doc_id: Optional[str]) -> Optional[Dict[str, Any]]:
    """get(id) -> record | None"""
    if not doc_id:
        return None
    return db[collection].find_one({'id': doc_id}, NO_ID)


def find_many_by_ids(db: Database, collection: str, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Батч-загрузка документов одним запросом $in.

    Returns:
        {id: document}; отсутствующие id просто не попадают в словарь
    """
    unique_ids: List[str] = sorted({i for i in ids if i})
    if not unique_ids:
        return {}
    return {
        doc['id']: doc
        for doc in db[collection].find({'id': {'$in': unique_ids}}, NO_ID)
    }


def ensure_indexes(db: Database) -> None:
    """Create indexes for catalog, cart and orders collections. Idempotent."""
    db.categories.create_index("id", unique=True)
    db.categories.create_index("slug", unique=True)
    db.products.create_index("id", unique=True)
    db.products.create_index("category_id")
    db.products.create_index("type")
    db.products.create_index("featured")
    db.prebuilt_configs.create_index("id", unique=True)
    db.prebuilt_configs.create_index("category")
    db.prebuilt_configs.create_index("featured")
    db.custom_builds.create_index("id", unique=True)
    db.custom_builds.create_index("user_id")
    db.cart_items.create_index("id", unique=True)
    db.cart_items.create_index([("user_id", 1), ("item_type", 1), ("item_id", 1)], unique=True)
    db.orders.create_index("id", unique=True)
    db.orders.create_index("user_id")
    db.orders.create_index("status")
    db.orders.create_index("order_number", unique=True)
    logger.info("MongoDB indexes ensured")
