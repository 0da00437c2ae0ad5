# telehealth/api/prescriptions.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pymongo.errors import PyMongoError

from telehealth.core.errors import Forbidden, NotFound, TransportError
from telehealth.core.logger import logger
from telehealth.core.security import get_current_user, require_role
from telehealth.crud import user_crud
from telehealth.db.client import PRESCRIPTIONS, get_db
from telehealth.models.records import PrescriptionCreate, PrescriptionOut
from telehealth.utils.mongo_utils import to_object_id, with_id

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


def _visible_to(prescription: dict, user: dict) -> bool:
    user_id = str(user["_id"])
    return user_id in (prescription["patientId"], prescription["doctorId"])


@router.post("/", status_code=201)
def create_prescription(
        payload: PrescriptionCreate,
        current_user: dict = Depends(require_role(["doctor"])),
        db=Depends(get_db),
):
    patient = user_crud.get_user(db, payload.patientId)
    if not patient or patient.get("role") != "patient":
        raise NotFound(f"Patient with ID {payload.patientId} not found")

    doc = {
        **payload.model_dump(),
        "doctorId": str(current_user["_id"]),
        "issuedAt": datetime.now(timezone.utc),
    }
    try:
        doc["_id"] = db[PRESCRIPTIONS].insert_one(doc).inserted_id
    except PyMongoError as e:
        logger.error(f"Error creating prescription: {str(e)}")
        raise TransportError("Could not save the prescription, please retry")

    logger.info(f"Prescription {doc['_id']} issued by doctor {current_user['_id']} to patient {payload.patientId}")
    return {"success": True, "data": PrescriptionOut(**with_id(doc))}


@router.get("/")
def list_my_prescriptions(current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    field = "doctorId" if current_user["role"] == "doctor" else "patientId"
    cursor = db[PRESCRIPTIONS].find({field: str(current_user["_id"])}).sort("issuedAt", -1)
    return {"success": True, "data": [PrescriptionOut(**with_id(doc)) for doc in cursor]}


@router.get("/patient/{patient_id}")
def list_patient_prescriptions(
        patient_id: str,
        current_user: dict = Depends(get_current_user),
        db=Depends(get_db),
):
    if current_user["role"] == "patient" and str(current_user["_id"]) != patient_id:
        raise Forbidden("Patients can only view their own prescriptions")
    query = {"patientId": patient_id}
    if current_user["role"] == "doctor":
        query["doctorId"] = str(current_user["_id"])
    cursor = db[PRESCRIPTIONS].find(query).sort("issuedAt", -1)
    return {"success": True, "data": [PrescriptionOut(**with_id(doc)) for doc in cursor]}


@router.get("/{prescription_id}")
def get_prescription(prescription_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    oid = to_object_id(prescription_id)
    doc = db[PRESCRIPTIONS].find_one({"_id": oid}) if oid else None
    if not doc or not _visible_to(doc, current_user):
        raise NotFound(f"Prescription with ID {prescription_id} not found")
    return {"success": True, "data": PrescriptionOut(**with_id(doc))}
