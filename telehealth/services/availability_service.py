# telehealth/services/availability_service.py

from typing import List

from pymongo.errors import DuplicateKeyError, PyMongoError

from telehealth.core.clock import get_clock
from telehealth.core.errors import (
    Conflict, DoctorUnavailable, NotFound, PastAppointment, SlotAlreadyBooked, TransportError,
)
from telehealth.core.logger import logger
from telehealth.crud import appointment_crud, doctor_crud
from telehealth.utils.date_utils import combine, parse_date, weekday_name


class AvailabilityService:
    """
    Weekly slot table of each doctor.

    A slot's ``isBooked`` bit is only ever flipped through a conditional
    ``update_one`` so that two concurrent bookings of the same slot resolve
    inside MongoDB: the first write matches, the second matches nothing and
    is reported as ``SlotAlreadyBooked``.
    """

    def __init__(self, db, clock=None):
        if db is None:
            raise ValueError("Database connection is required")
        self.db = db
        self.clock = clock or get_clock()

    def _doctor(self, doctor_id: str) -> dict:
        doctor = doctor_crud.get_doctor(self.db, doctor_id)
        if not doctor:
            raise NotFound(f"Doctor with ID {doctor_id} not found")
        return doctor

    def get_bookable_slots(self, doctor_id: str, date: str) -> List[dict]:
        """
        Free slots of the doctor on ``date``, in stored order.

        On the current date only slots starting strictly after now are
        returned; past dates have no bookable slots.
        """
        doctor = self._doctor(doctor_id)
        day = weekday_name(date)
        now = self.clock.now()
        requested = parse_date(date)
        today = now.date()

        if requested < today:
            return []

        slots = []
        for entry in doctor.get("availability", []):
            if entry.get("day") != day:
                continue
            for slot in entry.get("slots", []):
                if slot.get("isBooked"):
                    continue
                if requested == today and combine(requested, slot["startTime"], self.clock.tz) <= now:
                    continue
                slots.append({"startTime": slot["startTime"], "endTime": slot["endTime"]})
        return slots

    def get_available_days(self, doctor_id: str) -> dict:
        doctor = self._doctor(doctor_id)
        accepting = doctor.get("isAcceptingAppointments", True)
        days = []
        if accepting:
            days = [
                entry["day"] for entry in doctor.get("availability", [])
                if any(not s.get("isBooked") for s in entry.get("slots", []))
            ]
        return {"doctorId": doctor_id, "isAcceptingAppointments": accepting, "days": days}

    def reserve(self, doctor_id: str, date: str, slot: dict, appointment: dict) -> str:
        """
        Mark the slot booked and insert ``appointment``; returns its id.

        Either both writes land or neither does: a failed insert gives the
        slot back before the error propagates.
        """
        doctor = self._doctor(doctor_id)
        day = weekday_name(date)
        start, end = slot["startTime"], slot["endTime"]

        index = doctor_crud.locate_slot(doctor, day, start, end)
        if index is None:
            raise NotFound(f"Doctor {doctor_id} has no {start}-{end} slot on {day}")

        if combine(date, start, self.clock.tz) <= self.clock.now():
            raise PastAppointment("Cannot book a slot that has already started")

        try:
            booked = doctor_crud.mark_slot_booked(self.db, doctor_id, day, index, start, end)
        except PyMongoError as e:
            logger.error(f"Failed to reserve slot {day} {start} for doctor {doctor_id}: {str(e)}")
            raise TransportError("Could not reserve the slot, please retry")

        if not booked:
            current = doctor_crud.get_doctor(self.db, doctor_id)
            if current is not None and current.get("isAcceptingAppointments") is False:
                raise DoctorUnavailable()
            logger.info(f"Slot {day} {start}-{end} of doctor {doctor_id} lost to a concurrent booking")
            raise SlotAlreadyBooked()

        try:
            appointment_id = appointment_crud.create_appointment(self.db, appointment)
        except DuplicateKeyError:
            # another scheduled appointment already holds this date and time;
            # the bit we just set references nothing
            logger.warning(f"Duplicate scheduled appointment for doctor {doctor_id} on {date} {start}")
            self._free(doctor_id, day, start, end)
            raise SlotAlreadyBooked()
        except PyMongoError as e:
            logger.error(f"Failed to create appointment for doctor {doctor_id}: {str(e)}")
            self._free(doctor_id, day, start, end)
            raise TransportError("Could not create the appointment, please retry")

        logger.info(f"Slot {day} {start}-{end} of doctor {doctor_id} reserved by appointment {appointment_id}")
        return appointment_id

    def release(self, appointment_id: str) -> bool:
        """
        Give back the slot held by the appointment. Returns True when a slot
        was actually freed; releasing twice is a no-op.
        """
        appointment = appointment_crud.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFound(f"Appointment with ID {appointment_id} not found")

        day = weekday_name(appointment["date"])
        return self._free(
            appointment["doctorId"], day, appointment["time"]["start"], appointment["time"]["end"]
        )

    def _free(self, doctor_id: str, day: str, start: str, end: str) -> bool:
        doctor = doctor_crud.get_doctor(self.db, doctor_id)
        if not doctor:
            return False
        index = doctor_crud.locate_slot(doctor, day, start, end)
        if index is None:
            return False
        try:
            freed = doctor_crud.mark_slot_free(self.db, doctor_id, day, index, start, end)
        except PyMongoError as e:
            logger.error(f"Failed to release slot {day} {start} of doctor {doctor_id}: {str(e)}")
            raise TransportError("Could not release the slot, please retry")
        if freed:
            logger.info(f"Slot {day} {start}-{end} of doctor {doctor_id} released")
        return freed

    def set_availability(self, doctor_id: str, availability: List[dict]) -> List[dict]:
        """
        Replace the doctor's weekly table. Slots that survive with the same
        times keep their ``isBooked`` bit; dropping a booked slot is refused.
        """
        doctor = self._doctor(doctor_id)
        current = doctor.get("availability", [])

        booked = {
            (entry["day"], s["startTime"], s["endTime"])
            for entry in current for s in entry.get("slots", []) if s.get("isBooked")
        }
        new_table = []
        kept = set()
        for entry in availability:
            slots = []
            for s in entry["slots"]:
                key = (entry["day"], s["startTime"], s["endTime"])
                if key in booked:
                    kept.add(key)
                slots.append({"startTime": s["startTime"], "endTime": s["endTime"], "isBooked": key in booked})
            new_table.append({"day": entry["day"], "slots": slots})

        dropped = booked - kept
        if dropped:
            day, start, end = sorted(dropped)[0]
            raise SlotAlreadyBooked(f"Slot {day} {start}-{end} has an active booking and cannot be removed")

        if not doctor_crud.replace_availability(self.db, doctor_id, current, new_table):
            raise Conflict("Availability changed while updating, reload and try again")

        logger.info(f"Doctor {doctor_id} availability updated ({len(new_table)} days)")
        return new_table

    def set_accepting(self, doctor_id: str, accepting: bool) -> bool:
        self._doctor(doctor_id)
        doctor_crud.set_accepting(self.db, doctor_id, accepting)
        logger.info(f"Doctor {doctor_id} isAcceptingAppointments={accepting}")
        return accepting
