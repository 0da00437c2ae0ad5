# telehealth/models/doctor.py

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from telehealth.utils.date_utils import WEEKDAYS, is_valid_hhmm

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _check_hhmm(v: str) -> str:
    if not is_valid_hhmm(v):
        raise ValueError("Time must be in 24h HH:MM format")
    return v


class SlotTime(BaseModel):
    startTime: str
    endTime: str

    @field_validator("startTime", "endTime")
    @classmethod
    def check_hhmm(cls, v):
        return _check_hhmm(v)

    @model_validator(mode="after")
    def check_order(self):
        # zero-padded HH:MM strings compare like times
        if self.startTime >= self.endTime:
            raise ValueError("startTime must be before endTime")
        return self


class TimeSlot(SlotTime):
    isBooked: bool = False


class DayAvailability(BaseModel):
    day: Weekday
    slots: List[TimeSlot] = []

    @model_validator(mode="after")
    def check_slots(self):
        for prev, cur in zip(self.slots, self.slots[1:]):
            if cur.startTime < prev.endTime:
                raise ValueError(
                    f"Slots on {self.day} must be in ascending order and must not overlap "
                    f"({prev.startTime}-{prev.endTime} / {cur.startTime}-{cur.endTime})"
                )
        return self


class AvailabilityUpdate(BaseModel):
    availability: List[DayAvailability]

    @field_validator("availability")
    @classmethod
    def unique_days(cls, v):
        days = [d.day for d in v]
        if len(days) != len(set(days)):
            raise ValueError("Each weekday may appear only once")
        return sorted(v, key=lambda d: WEEKDAYS.index(d.day))


class AcceptingUpdate(BaseModel):
    isAcceptingAppointments: bool


class Qualification(BaseModel):
    degree: str
    institution: Optional[str] = None
    year: Optional[int] = None


class Hospital(BaseModel):
    name: str
    address: Optional[str] = None


class WorkingHours(BaseModel):
    start: str = "09:00"
    end: str = "17:00"


class DoctorSummary(BaseModel):
    id: str
    name: str
    specialization: str
    consultationFee: float
    experience: int = 0
    hospital: Optional[Hospital] = None
    rating: float = 0
    profileImage: Optional[str] = None
    isAcceptingAppointments: bool = True


class BookableSlots(BaseModel):
    doctorId: str
    date: str
    day: Weekday
    slots: List[SlotTime]


class AvailableDays(BaseModel):
    doctorId: str
    isAcceptingAppointments: bool
    days: List[Weekday] = Field(default_factory=list)
