# telehealth/crud/user_crud.py

from typing import Optional

from telehealth.db.client import USERS
from telehealth.utils.mongo_utils import to_object_id


def get_user(db, user_id: str) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return db[USERS].find_one({"_id": oid})


def get_user_by_external_id(db, external_id: str) -> Optional[dict]:
    return db[USERS].find_one({"externalId": external_id})


def create_user(db, data: dict) -> dict:
    result = db[USERS].insert_one(data)
    data["_id"] = result.inserted_id
    return data


def touch_last_login(db, user_id, when) -> None:
    db[USERS].update_one({"_id": to_object_id(user_id)}, {"$set": {"lastLoginAt": when}})
