# telehealth/api/appointments.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from telehealth.api.deps import get_appointment_service
from telehealth.core.security import get_current_user, require_role
from telehealth.models.appointment import (
    AppointmentCreate, AppointmentOut, AppointmentStatus, CancelRequest, CompleteRequest, VideoRoom,
)
from telehealth.services.appointment_service import AppointmentService

router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"]
)


@router.post("/", status_code=201)
def book_appointment(
        payload: AppointmentCreate,
        current_user: dict = Depends(require_role(["patient"])),
        service: AppointmentService = Depends(get_appointment_service),
):
    """
    Book an open slot. 409 ``slot_already_booked`` means another patient
    got there first and the slot list should be fetched again.
    """
    appointment = service.book(
        patient_id=str(current_user["_id"]),
        doctor_id=payload.doctorId,
        date=payload.date,
        slot=payload.slot.model_dump(),
        type=payload.type,
        reason=payload.reason,
        medical_records=payload.medicalRecords,
    )
    return {
        "success": True,
        "message": "Appointment booked successfully",
        "data": AppointmentOut(**service.with_join_flag(appointment)),
    }


@router.get("/")
def list_appointments(
        status: Optional[List[AppointmentStatus]] = Query(None, description="Filter by status (can specify multiple)"),
        current_user: dict = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service),
):
    statuses = [s.value for s in status] if status else None
    appointments = service.list_for_user(current_user, statuses)
    return {
        "success": True,
        "data": [AppointmentOut(**service.with_join_flag(a)) for a in appointments],
    }


@router.get("/{appointment_id}")
def get_appointment(
        appointment_id: str,
        current_user: dict = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_for_user(appointment_id, current_user)
    return {"success": True, "data": AppointmentOut(**service.with_join_flag(appointment))}


@router.patch("/{appointment_id}/cancel")
def cancel_appointment(
        appointment_id: str,
        payload: CancelRequest,
        current_user: dict = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service),
):
    service.get_for_user(appointment_id, current_user)
    appointment = service.cancel(appointment_id, payload.reason)
    return {
        "success": True,
        "message": "Appointment cancelled successfully",
        "data": AppointmentOut(**service.with_join_flag(appointment)),
    }


@router.patch("/{appointment_id}/complete")
def complete_appointment(
        appointment_id: str,
        payload: CompleteRequest,
        current_user: dict = Depends(require_role(["doctor"])),
        service: AppointmentService = Depends(get_appointment_service),
):
    service.get_for_user(appointment_id, current_user)
    appointment = service.complete(appointment_id, payload.notes)
    return {"success": True, "data": AppointmentOut(**service.with_join_flag(appointment))}


@router.patch("/{appointment_id}/no-show")
def mark_no_show(
        appointment_id: str,
        current_user: dict = Depends(require_role(["doctor"])),
        service: AppointmentService = Depends(get_appointment_service),
):
    service.get_for_user(appointment_id, current_user)
    appointment = service.mark_no_show(appointment_id)
    return {"success": True, "data": AppointmentOut(**service.with_join_flag(appointment))}


@router.get("/{appointment_id}/video-room", response_model=VideoRoom)
def get_video_room(
        appointment_id: str,
        current_user: dict = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service),
):
    return service.video_room(appointment_id, current_user)
