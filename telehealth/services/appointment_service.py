# telehealth/services/appointment_service.py

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Optional

from itsdangerous import URLSafeTimedSerializer
from pymongo.errors import PyMongoError

from telehealth.core import config
from telehealth.core.clock import clinic_timezone, get_clock
from telehealth.core.errors import (
    AlreadyFinalized, DoctorUnavailable, Forbidden, NotFound, PastAppointment, TransportError, VideoWindowClosed,
)
from telehealth.core.logger import logger
from telehealth.crud import appointment_crud, doctor_crud
from telehealth.models.appointment import AppointmentStatus
from telehealth.services.availability_service import AvailabilityService
from telehealth.utils.date_utils import combine

VIDEO_JOIN_WINDOW = timedelta(minutes=config.VIDEO_JOIN_WINDOW_MINUTES)
VIDEO_CREDENTIAL_SALT = "video-room"


def scheduled_start(appointment: dict, tz) -> datetime:
    """Date of the appointment combined with its start time of day."""
    return combine(appointment["date"], appointment["time"]["start"], tz)


def can_join_video(appointment: dict, now: datetime, tz=None, window: timedelta = VIDEO_JOIN_WINDOW) -> bool:
    """
    True for a scheduled video appointment whose start lies within
    ``window`` of ``now`` on either side, both ends included.

    The stored date and time are read in ``tz``, the clinic timezone by
    default, whatever zone ``now`` is expressed in. Derived on every call
    from the injected ``now``; never stored.
    """
    if appointment.get("type") != "video":
        return False
    if appointment.get("status") != AppointmentStatus.SCHEDULED.value:
        return False
    start = scheduled_start(appointment, tz or clinic_timezone())
    return abs(start - now) <= window


class AppointmentService:
    """
    Appointment lifecycle: book, cancel, complete, no-show and the video
    join gate. Slot bookkeeping is delegated to ``AvailabilityService``.
    """

    def __init__(self, db, clock=None, availability: AvailabilityService = None):
        if db is None:
            raise ValueError("Database connection is required")
        self.db = db
        self.clock = clock or get_clock()
        self.availability = availability or AvailabilityService(db, self.clock)

    def _now_utc(self) -> datetime:
        return self.clock.now().astimezone(timezone.utc)

    def book(
            self,
            patient_id: str,
            doctor_id: str,
            date: str,
            slot: Dict[str, str],
            type: str = "in-person",
            reason: str = "",
            medical_records: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Book ``slot`` of ``doctor_id`` on ``date`` for the patient.

        Raises NotFound, DoctorUnavailable, SlotAlreadyBooked or
        PastAppointment; on any failure nothing is written.
        """
        doctor = doctor_crud.get_doctor(self.db, doctor_id)
        if not doctor:
            raise NotFound(f"Doctor with ID {doctor_id} not found")
        if not doctor.get("isAcceptingAppointments", True):
            raise DoctorUnavailable()

        now = self._now_utc()
        appointment = {
            "patientId": patient_id,
            "doctorId": doctor_id,
            "date": date,
            "time": {"start": slot["startTime"], "end": slot["endTime"]},
            "type": type,
            "status": AppointmentStatus.SCHEDULED.value,
            "reason": reason,
            "notes": None,
            "cancellationReason": None,
            "medicalRecords": medical_records or [],
            "createdAt": now,
            "updatedAt": now,
        }

        appointment_id = self.availability.reserve(doctor_id, date, slot, appointment)
        logger.info(f"Appointment {appointment_id} booked by patient {patient_id} with doctor {doctor_id} on {date}")
        return self.get(appointment_id)

    def cancel(self, appointment_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        appointment = self.get(appointment_id)
        self._ensure_scheduled(appointment)

        if scheduled_start(appointment, self.clock.tz) <= self.clock.now():
            raise PastAppointment("Cannot cancel an appointment whose scheduled time has passed")

        now = self._now_utc()
        changed = self._transition(appointment_id, {
            "status": AppointmentStatus.CANCELLED.value,
            "cancellationReason": reason,
            "cancelledAt": now,
            "updatedAt": now,
        })
        if not changed:
            raise AlreadyFinalized()

        self.availability.release(appointment_id)
        logger.info(f"Appointment {appointment_id} cancelled: {reason or 'no reason provided'}")
        return self.get(appointment_id)

    def complete(self, appointment_id: str, notes: Optional[str] = None) -> Dict[str, Any]:
        appointment = self.get(appointment_id)
        self._ensure_scheduled(appointment)

        now = self._now_utc()
        update = {"status": AppointmentStatus.COMPLETED.value, "completedAt": now, "updatedAt": now}
        if notes is not None:
            update["notes"] = notes
        if not self._transition(appointment_id, update):
            raise AlreadyFinalized()

        logger.info(f"Appointment {appointment_id} completed")
        return self.get(appointment_id)

    def mark_no_show(self, appointment_id: str) -> Dict[str, Any]:
        appointment = self.get(appointment_id)
        self._ensure_scheduled(appointment)

        if not self._transition(appointment_id, {
            "status": AppointmentStatus.NO_SHOW.value,
            "updatedAt": self._now_utc(),
        }):
            raise AlreadyFinalized()

        logger.info(f"Appointment {appointment_id} marked as no-show")
        return self.get(appointment_id)

    def get(self, appointment_id: str) -> Dict[str, Any]:
        appointment = appointment_crud.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFound(f"Appointment with ID {appointment_id} not found")
        return appointment

    def get_for_user(self, appointment_id: str, user: dict) -> Dict[str, Any]:
        """Appointment visible to ``user``; other people's appointments read as missing."""
        appointment = self.get(appointment_id)
        if str(user["_id"]) not in (appointment["patientId"], appointment["doctorId"]):
            raise NotFound(f"Appointment with ID {appointment_id} not found")
        return appointment

    def list_for_user(self, user: dict, statuses: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        user_id = str(user["_id"])
        if user["role"] == "doctor":
            return appointment_crud.list_appointments(self.db, doctor_id=user_id, statuses=statuses)
        return appointment_crud.list_appointments(self.db, patient_id=user_id, statuses=statuses)

    def with_join_flag(self, appointment: dict) -> dict:
        return {**appointment, "canJoinVideo": can_join_video(appointment, self.clock.now(), self.clock.tz)}

    def video_room(self, appointment_id: str, user: dict) -> Dict[str, Any]:
        """
        Room identifier and a signed, short-lived join credential for the
        video provider. Only handed out while ``can_join_video`` holds.
        """
        appointment = self.get_for_user(appointment_id, user)
        if appointment.get("type") != "video":
            raise Forbidden("This appointment is not a video consultation")
        if not can_join_video(appointment, self.clock.now(), self.clock.tz):
            raise VideoWindowClosed()

        room_id = f"appointment-{appointment_id}"
        serializer = URLSafeTimedSerializer(config.SECRET_KEY)
        credential = serializer.dumps({"room": room_id, "uid": str(user["_id"])}, salt=VIDEO_CREDENTIAL_SALT)
        logger.info(f"Video room {room_id} credential issued to user {user['_id']}")
        return {
            "appointmentId": appointment_id,
            "roomId": room_id,
            "appId": config.VIDEO_APP_ID,
            "credential": credential,
            "expiresIn": config.VIDEO_CREDENTIAL_TTL_SECONDS,
        }

    def _ensure_scheduled(self, appointment: dict) -> None:
        if AppointmentStatus(appointment["status"]).is_terminal:
            raise AlreadyFinalized(f"Appointment is already {appointment['status']}")

    def _transition(self, appointment_id: str, update: dict) -> bool:
        try:
            return appointment_crud.transition_status(
                self.db, appointment_id, AppointmentStatus.SCHEDULED.value, update
            )
        except PyMongoError as e:
            logger.error(f"Error updating appointment {appointment_id}: {str(e)}")
            raise TransportError("Could not update the appointment, please retry")


def verify_video_credential(credential: str, max_age: int = None) -> dict:
    """Payload of a join credential issued by ``video_room``."""
    serializer = URLSafeTimedSerializer(config.SECRET_KEY)
    return serializer.loads(
        credential,
        salt=VIDEO_CREDENTIAL_SALT,
        max_age=max_age if max_age is not None else config.VIDEO_CREDENTIAL_TTL_SECONDS,
    )
