# telehealth/utils/mongo_utils.py

from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value) -> Optional[ObjectId]:
    """ObjectId for ``value``, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def with_id(doc: dict) -> dict:
    """Copy of a Mongo document with ``_id`` exposed as string ``id``."""
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out
