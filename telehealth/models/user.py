# telehealth/models/user.py

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, model_validator

from telehealth.models.doctor import DayAvailability, Hospital, Qualification, WorkingHours


class Role(str, Enum):
    """Closed set of account roles. Adding a role means adding a member here."""
    PATIENT = "patient"
    DOCTOR = "doctor"


class _UserBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: Optional[EmailStr] = None
    profileImage: Optional[str] = None
    isActive: bool = True
    createdAt: Optional[datetime] = None


class PatientOut(_UserBase):
    role: Literal["patient"] = "patient"
    phone: Optional[str] = None
    dateOfBirth: Optional[str] = None
    gender: Optional[str] = None


class DoctorOut(_UserBase):
    role: Literal["doctor"] = "doctor"
    specialization: str
    licenseNumber: str
    consultationFee: float
    experience: int = 0
    qualifications: List[Qualification] = []
    hospital: Optional[Hospital] = None
    workingHours: WorkingHours = WorkingHours()
    rating: float = 0
    isAcceptingAppointments: bool = True
    availability: List[DayAvailability] = []


UserOut = Annotated[Union[PatientOut, DoctorOut], Field(discriminator="role")]
user_adapter = TypeAdapter(UserOut)


def to_user_out(doc: dict) -> Union[PatientOut, DoctorOut]:
    data = {k: v for k, v in doc.items() if k not in ("_id", "externalId")}
    data["id"] = str(doc["_id"])
    return user_adapter.validate_python(data)


class DoctorProfile(BaseModel):
    specialization: str = Field(..., min_length=2)
    licenseNumber: str = Field(..., min_length=2)
    consultationFee: float = Field(..., ge=0)
    experience: int = Field(0, ge=0)
    qualifications: List[Qualification] = []
    hospital: Optional[Hospital] = None
    workingHours: WorkingHours = WorkingHours()


class PatientProfile(BaseModel):
    phone: Optional[str] = None
    dateOfBirth: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None


class CredentialRequest(BaseModel):
    """Identity-provider ID token presented by the client"""
    credential: str = Field(..., min_length=1)
    provider: str = "google"


class RegisterRequest(CredentialRequest):
    role: Role = Role.PATIENT
    name: Optional[str] = None
    patient: Optional[PatientProfile] = None
    doctor: Optional[DoctorProfile] = None

    @model_validator(mode="after")
    def check_profile(self):
        if self.role == Role.DOCTOR and self.doctor is None:
            raise ValueError("Doctor registration requires specialization, licenseNumber and consultationFee")
        return self


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut
