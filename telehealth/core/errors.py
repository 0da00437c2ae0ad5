# telehealth/core/errors.py
"""
Error taxonomy shared by the services, the HTTP layer and the client.

Every error carries the HTTP status it maps to and a stable ``code`` the
client can switch on (re-fetch slots on ``slot_already_booked``, clear the
session on ``auth_invalid``, offer a retry on ``transport_error`` ...).
"""


class TelehealthError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "detail": self.detail}


class AuthInvalid(TelehealthError):
    """Authentication token is missing, malformed or expired"""
    status_code = 401
    code = "auth_invalid"


class Forbidden(TelehealthError):
    """Access forbidden: insufficient role"""
    status_code = 403
    code = "forbidden"


class NotFound(TelehealthError):
    """Resource not found"""
    status_code = 404
    code = "not_found"


class Conflict(TelehealthError):
    """Resource already exists"""
    status_code = 409
    code = "conflict"


class SlotAlreadyBooked(Conflict):
    """The selected slot has already been booked"""
    code = "slot_already_booked"


class DoctorUnavailable(Conflict):
    """The doctor is not accepting appointments"""
    code = "doctor_unavailable"


class AlreadyFinalized(Conflict):
    """The appointment is already completed, cancelled or marked no-show"""
    code = "already_finalized"


class VideoWindowClosed(Conflict):
    """The video consultation can only be joined within 30 minutes of its start"""
    code = "video_window_closed"


class PastAppointment(TelehealthError):
    """The appointment time has already passed"""
    status_code = 422
    code = "past_appointment"


class ValidationFailed(TelehealthError):
    """Invalid request data"""
    status_code = 422
    code = "validation_failed"


class TransportError(TelehealthError):
    """A storage or network call failed; the operation can be retried"""
    status_code = 503
    code = "transport_error"


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        AuthInvalid, Forbidden, NotFound, Conflict, SlotAlreadyBooked,
        DoctorUnavailable, AlreadyFinalized, VideoWindowClosed,
        PastAppointment, ValidationFailed, TransportError,
    )
}
