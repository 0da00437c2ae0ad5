# telehealth/crud/doctor_crud.py

import re
from typing import List, Optional, Tuple

from telehealth.db.client import USERS
from telehealth.utils.mongo_utils import to_object_id


def serialize_doctor(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name"),
        "specialization": doc.get("specialization"),
        "consultationFee": doc.get("consultationFee", 0),
        "experience": doc.get("experience", 0),
        "hospital": doc.get("hospital"),
        "rating": doc.get("rating", 0),
        "profileImage": doc.get("profileImage"),
        "isAcceptingAppointments": doc.get("isAcceptingAppointments", True),
    }


def get_doctor(db, doctor_id: str) -> Optional[dict]:
    oid = to_object_id(doctor_id)
    if oid is None:
        return None
    return db[USERS].find_one({"_id": oid, "role": "doctor"})


def find_doctors(
        db,
        name: Optional[str] = None,
        specialization: Optional[str] = None,
        max_fee: Optional[float] = None,
        min_experience: Optional[int] = None,
        accepting: Optional[bool] = None,
        limit: int = 50,
) -> List[dict]:
    query = {"role": "doctor", "isActive": {"$ne": False}}
    if name:
        query["name"] = {"$regex": re.escape(name), "$options": "i"}
    if specialization:
        query["specialization"] = {"$regex": f"^{re.escape(specialization)}$", "$options": "i"}
    if max_fee is not None:
        query["consultationFee"] = {"$lte": max_fee}
    if min_experience is not None:
        query["experience"] = {"$gte": min_experience}
    if accepting is not None:
        query["isAcceptingAppointments"] = accepting

    cursor = db[USERS].find(query).sort([("rating", -1), ("name", 1)]).limit(limit)
    return [serialize_doctor(doc) for doc in cursor]


def locate_slot(doctor: dict, day: str, start: str, end: str) -> Optional[Tuple[int, int]]:
    """(day index, slot index) of the matching slot in the weekly table."""
    for i, entry in enumerate(doctor.get("availability", [])):
        if entry.get("day") != day:
            continue
        for j, slot in enumerate(entry.get("slots", [])):
            if slot.get("startTime") == start and slot.get("endTime") == end:
                return i, j
    return None


def _slot_filter(doctor_id, day: str, index: Tuple[int, int], start: str, end: str) -> dict:
    i, j = index
    # Pin the positional path to the expected day and times so a concurrent
    # availability rewrite cannot redirect the update to another slot.
    return {
        "_id": to_object_id(doctor_id),
        f"availability.{i}.day": day,
        f"availability.{i}.slots.{j}.startTime": start,
        f"availability.{i}.slots.{j}.endTime": end,
    }


def mark_slot_booked(db, doctor_id: str, day: str, index: Tuple[int, int], start: str, end: str) -> bool:
    """Conditionally flip ``isBooked`` to true. False when the slot was not free."""
    i, j = index
    query = _slot_filter(doctor_id, day, index, start, end)
    query[f"availability.{i}.slots.{j}.isBooked"] = {"$ne": True}
    query["isAcceptingAppointments"] = {"$ne": False}
    result = db[USERS].update_one(query, {"$set": {f"availability.{i}.slots.{j}.isBooked": True}})
    return result.modified_count == 1


def mark_slot_free(db, doctor_id: str, day: str, index: Tuple[int, int], start: str, end: str) -> bool:
    """Conditionally flip ``isBooked`` to false. False when it was already free."""
    i, j = index
    query = _slot_filter(doctor_id, day, index, start, end)
    query[f"availability.{i}.slots.{j}.isBooked"] = True
    result = db[USERS].update_one(query, {"$set": {f"availability.{i}.slots.{j}.isBooked": False}})
    return result.modified_count == 1


def replace_availability(db, doctor_id: str, expected: list, availability: list) -> bool:
    """Swap the weekly table, provided it still equals ``expected``."""
    query = {"_id": to_object_id(doctor_id), "role": "doctor"}
    if expected:
        query["availability"] = expected
    else:
        query["$or"] = [{"availability": {"$exists": False}}, {"availability": {"$size": 0}}]
    result = db[USERS].update_one(
        query,
        {"$set": {"availability": availability}},
    )
    return result.matched_count == 1


def set_accepting(db, doctor_id: str, accepting: bool) -> bool:
    result = db[USERS].update_one(
        {"_id": to_object_id(doctor_id), "role": "doctor"},
        {"$set": {"isAcceptingAppointments": accepting}},
    )
    return result.matched_count == 1
