# telehealth/api/medical_records.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pymongo.errors import PyMongoError

from telehealth.core.errors import TransportError
from telehealth.core.logger import logger
from telehealth.core.security import require_role
from telehealth.db.client import MEDICAL_RECORDS, get_db
from telehealth.models.records import MedicalRecordCreate, MedicalRecordOut
from telehealth.utils.mongo_utils import with_id

router = APIRouter(prefix="/medical-records", tags=["Medical Records"])


@router.get("/")
def list_medical_records(current_user: dict = Depends(require_role(["patient"])), db=Depends(get_db)):
    cursor = db[MEDICAL_RECORDS].find({"patientId": str(current_user["_id"])}).sort("createdAt", -1)
    return {"success": True, "data": [MedicalRecordOut(**with_id(doc)) for doc in cursor]}


@router.post("/", status_code=201)
def create_medical_record(
        payload: MedicalRecordCreate,
        current_user: dict = Depends(require_role(["patient"])),
        db=Depends(get_db),
):
    doc = {
        **payload.model_dump(),
        "patientId": str(current_user["_id"]),
        "createdAt": datetime.now(timezone.utc),
    }
    try:
        doc["_id"] = db[MEDICAL_RECORDS].insert_one(doc).inserted_id
    except PyMongoError as e:
        logger.error(f"Error creating medical record: {str(e)}")
        raise TransportError("Could not save the medical record, please retry")

    logger.info(f"Medical record {doc['_id']} created for patient {current_user['_id']}")
    return {"success": True, "data": MedicalRecordOut(**with_id(doc))}
