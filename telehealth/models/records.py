# telehealth/models/records.py

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Medication(BaseModel):
    name: str = Field(..., min_length=1)
    dosage: str
    frequency: str
    duration: Optional[str] = None
    instructions: Optional[str] = None


class PrescriptionCreate(BaseModel):
    patientId: str
    appointmentId: Optional[str] = None
    medications: List[Medication] = Field(..., min_length=1)
    notes: Optional[str] = None


class PrescriptionOut(PrescriptionCreate):
    id: str
    doctorId: str
    issuedAt: datetime


class RecordFile(BaseModel):
    url: str
    name: str = "Uploaded file"
    fileType: str = "application/pdf"


class MedicalRecordCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    recordType: Literal["lab-result", "imaging", "prescription", "diagnosis", "other"] = "other"
    files: List[RecordFile] = []


class MedicalRecordOut(MedicalRecordCreate):
    id: str
    patientId: str
    createdAt: datetime
