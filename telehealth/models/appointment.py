# telehealth/models/appointment.py

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from telehealth.models.doctor import SlotTime
from telehealth.utils.date_utils import parse_date


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

    @property
    def is_terminal(self) -> bool:
        return self is not AppointmentStatus.SCHEDULED

AppointmentType = Literal["in-person", "video"]


class AppointmentTime(BaseModel):
    start: str
    end: str


class AppointmentCreate(BaseModel):
    doctorId: str
    date: str = Field(..., description="Appointment date in YYYY-MM-DD format")
    slot: SlotTime
    type: AppointmentType = "in-person"
    reason: str = Field(..., min_length=1, max_length=500)
    medicalRecords: List[str] = []

    @field_validator("date")
    @classmethod
    def validate_date_format(cls, v):
        try:
            parse_date(v)
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class CompleteRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentOut(BaseModel):
    id: str
    patientId: str
    doctorId: str
    date: str
    time: AppointmentTime
    type: AppointmentType
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancellationReason: Optional[str] = None
    medicalRecords: List[str] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    cancelledAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    canJoinVideo: bool = False


class VideoRoom(BaseModel):
    appointmentId: str
    roomId: str
    appId: str
    credential: str
    expiresIn: int
