# telehealth/api/auth.py

from fastapi import APIRouter, Depends

from telehealth.api.deps import get_identity_gateway
from telehealth.core.logger import logger
from telehealth.core.security import get_current_user
from telehealth.models.user import AuthResponse, CredentialRequest, RegisterRequest, Role, to_user_out
from telehealth.services.identity_service import IdentityGateway

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/authenticate", response_model=AuthResponse)
def authenticate(payload: CredentialRequest, gateway: IdentityGateway = Depends(get_identity_gateway)):
    """Exchange an identity-provider ID token for an application session."""
    session = gateway.exchange(payload.credential)
    logger.info(f"User {session['user'].id} signed in via {payload.provider} as {session['user'].role}")
    return {"success": True, **session}


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, gateway: IdentityGateway = Depends(get_identity_gateway)):
    if payload.role == Role.DOCTOR:
        profile = payload.doctor.model_dump()
    else:
        profile = payload.patient.model_dump(exclude_none=True) if payload.patient else {}
    session = gateway.register(payload.credential, payload.role, payload.name, profile)
    return {"success": True, **session}


@router.get("/verify")
def verify_token(current_user: dict = Depends(get_current_user)):
    return {"success": True, "user": to_user_out(current_user)}


@router.get("/me")
def read_current_user(current_user: dict = Depends(get_current_user)):
    return {"success": True, "data": to_user_out(current_user)}
