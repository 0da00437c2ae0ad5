# telehealth/api/doctors.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from telehealth.api.deps import get_availability_service
from telehealth.core.errors import NotFound, ValidationFailed
from telehealth.core.security import get_current_user, require_role
from telehealth.crud import doctor_crud
from telehealth.db.client import get_db
from telehealth.models.doctor import (
    AcceptingUpdate, AvailabilityUpdate, AvailableDays, BookableSlots, DoctorSummary,
)
from telehealth.models.user import to_user_out
from telehealth.services.availability_service import AvailabilityService
from telehealth.utils.date_utils import is_valid_date, weekday_name

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("/", response_model=List[DoctorSummary])
def list_doctors(
        name: Optional[str] = Query(None, description="Search by doctor name"),
        specialization: Optional[str] = Query(None),
        maxFee: Optional[float] = Query(None, ge=0, description="Maximum consultation fee"),
        minExperience: Optional[int] = Query(None, ge=0, description="Minimum years of experience"),
        accepting: Optional[bool] = Query(None, description="Only doctors accepting appointments"),
        limit: int = Query(50, ge=1, le=100),
        db=Depends(get_db),
):
    return doctor_crud.find_doctors(
        db, name=name, specialization=specialization, max_fee=maxFee,
        min_experience=minExperience, accepting=accepting, limit=limit,
    )


@router.put("/me/availability")
def update_availability(
        payload: AvailabilityUpdate,
        current_user: dict = Depends(require_role(["doctor"])),
        service: AvailabilityService = Depends(get_availability_service),
):
    table = service.set_availability(
        str(current_user["_id"]), [d.model_dump(include={"day", "slots"}) for d in payload.availability]
    )
    return {"success": True, "availability": table}


@router.patch("/me/accepting")
def update_accepting(
        payload: AcceptingUpdate,
        current_user: dict = Depends(require_role(["doctor"])),
        service: AvailabilityService = Depends(get_availability_service),
):
    accepting = service.set_accepting(str(current_user["_id"]), payload.isAcceptingAppointments)
    return {"success": True, "isAcceptingAppointments": accepting}


@router.get("/{doctor_id}")
def get_doctor(doctor_id: str, db=Depends(get_db)):
    doctor = doctor_crud.get_doctor(db, doctor_id)
    if not doctor:
        raise NotFound(f"Doctor with ID {doctor_id} not found")
    return {"success": True, "data": to_user_out(doctor)}


@router.get("/{doctor_id}/available-dates", response_model=AvailableDays)
def get_available_dates(doctor_id: str, service: AvailabilityService = Depends(get_availability_service)):
    return service.get_available_days(doctor_id)


@router.get("/{doctor_id}/slots", response_model=BookableSlots)
def get_bookable_slots(
        doctor_id: str,
        date: str = Query(..., description="Date in YYYY-MM-DD format"),
        current_user: dict = Depends(get_current_user),
        service: AvailabilityService = Depends(get_availability_service),
):
    if not is_valid_date(date):
        raise ValidationFailed("Date must be in YYYY-MM-DD format")
    return {
        "doctorId": doctor_id,
        "date": date,
        "day": weekday_name(date),
        "slots": service.get_bookable_slots(doctor_id, date),
    }
