# telehealth/crud/appointment_crud.py

from typing import List, Optional

from telehealth.db.client import APPOINTMENTS
from telehealth.utils.mongo_utils import to_object_id, with_id


def create_appointment(db, data: dict) -> str:
    return str(db[APPOINTMENTS].insert_one(data).inserted_id)


def get_appointment(db, appointment_id: str) -> Optional[dict]:
    oid = to_object_id(appointment_id)
    if oid is None:
        return None
    doc = db[APPOINTMENTS].find_one({"_id": oid})
    return with_id(doc) if doc else None


def list_appointments(
        db,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
) -> List[dict]:
    query = {}
    if patient_id:
        query["patientId"] = patient_id
    if doctor_id:
        query["doctorId"] = doctor_id
    if statuses:
        query["status"] = {"$in": statuses}

    cursor = db[APPOINTMENTS].find(query).sort([("date", 1), ("time.start", 1)])
    return [with_id(doc) for doc in cursor]


def transition_status(db, appointment_id: str, from_status: str, update: dict) -> bool:
    """Apply ``update`` only while the appointment is still in ``from_status``."""
    result = db[APPOINTMENTS].update_one(
        {"_id": to_object_id(appointment_id), "status": from_status},
        {"$set": update},
    )
    return result.modified_count == 1
