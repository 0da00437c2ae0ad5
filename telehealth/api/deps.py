# telehealth/api/deps.py

from fastapi import Depends

from telehealth.core.clock import get_clock
from telehealth.db.client import get_db
from telehealth.services.appointment_service import AppointmentService
from telehealth.services.availability_service import AvailabilityService
from telehealth.services.identity_service import IdentityGateway, IdentityProvider


def get_identity_provider() -> IdentityProvider:
    return IdentityProvider()


def get_identity_gateway(db=Depends(get_db), provider=Depends(get_identity_provider)) -> IdentityGateway:
    return IdentityGateway(db, provider)


def get_availability_service(db=Depends(get_db), clock=Depends(get_clock)) -> AvailabilityService:
    return AvailabilityService(db, clock)


def get_appointment_service(
        db=Depends(get_db),
        availability: AvailabilityService = Depends(get_availability_service),
) -> AppointmentService:
    return AppointmentService(db, availability.clock, availability)
