"""
MongoDB access for the storefront.

The client is created once from DATABASE_URL / DATABASE_NAME. When either is
missing ``db`` stays None and the API reports the database as unavailable.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson.objectid import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

import settings
from logger import get_logger

logger = get_logger(__name__)

db = None
if settings.DATABASE_URL and settings.DATABASE_NAME:
    _client = MongoClient(settings.DATABASE_URL)
    db = _client[settings.DATABASE_NAME]
else:
    logger.warning("DATABASE_URL / DATABASE_NAME not set, database disabled")

# Never sent to a client
PRIVATE_USER_FIELDS = {"password": 0, "answer": 0}
NO_PHOTO = {"photo": 0}


def ensure_indexes(database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["category"].create_index([("slug", ASCENDING)], unique=True)
    database["product"].create_index([("slug", ASCENDING)])
    database["order"].create_index([("buyer", ASCENDING)])


def to_object_id(value: Any) -> Any:
    """ObjectId for a 24-hex id string; anything else is used as-is, so an
    unknown id just matches nothing."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def serialize_doc(doc):
    if not doc:
        return doc
    if isinstance(doc, list):
        return [serialize_doc(d) for d in doc]
    doc = dict(doc)
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
        elif isinstance(v, datetime):
            doc[k] = v.isoformat()
        elif isinstance(v, dict):
            doc[k] = serialize_doc(v)
        elif isinstance(v, list):
            doc[k] = [serialize_doc(i) if isinstance(i, dict) else (str(i) if isinstance(i, ObjectId) else i) for i in v]
    return doc


def public_user(doc):
    if not doc:
        return doc
    return serialize_doc({k: v for k, v in doc.items() if k not in PRIVATE_USER_FIELDS})


def create_document(database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert ``data`` with created/updated timestamps and return the stored document."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = database[collection_name].insert_one(data_dict)
    data_dict["_id"] = result.inserted_id
    return data_dict


def get_documents(database, collection_name: str, filter_dict: Optional[dict] = None,
                  projection: Optional[dict] = None, sort_newest: bool = False,
                  skip: int = 0, limit: Optional[int] = None):
    cursor = database[collection_name].find(filter_dict or {}, projection)
    if sort_newest:
        cursor = cursor.sort("created_at", -1)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def populate_order(database, order: dict) -> dict:
    """Attach product documents (without photo) and the buyer's name to an order."""
    order = dict(order)
    product_ids = [to_object_id(p) for p in order.get("products", [])]
    products = {
        str(p["_id"]): p
        for p in database["product"].find({"_id": {"$in": product_ids}}, NO_PHOTO)
    } if product_ids else {}
    order["products"] = [products[str(pid)] for pid in product_ids if str(pid) in products]
    buyer = database["user"].find_one({"_id": to_object_id(order.get("buyer"))}, {"name": 1})
    order["buyer"] = buyer
    return order


def populate_category(database, product: dict) -> dict:
    product = dict(product)
    product["category"] = database["category"].find_one({"_id": to_object_id(product.get("category"))})
    return product
