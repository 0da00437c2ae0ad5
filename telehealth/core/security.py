# telehealth/core/security.py

import datetime

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from telehealth.core import config
from telehealth.core.errors import AuthInvalid, Forbidden
from telehealth.crud import user_crud
from telehealth.db.client import get_db

bearer_scheme = HTTPBearer(auto_error=False)


# Create JWT token with expiration
def create_access_token(data: dict, expires_delta: datetime.timedelta = None) -> str:
    to_encode = data.copy()
    expires_delta = expires_delta or datetime.timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.datetime.now(datetime.timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        raise AuthInvalid("Could not validate credentials")
    if not payload.get("sub"):
        raise AuthInvalid("Could not validate credentials")
    return payload


# Get current user from token
def get_current_user(
        creds: HTTPAuthorizationCredentials = Depends(bearer_scheme),
        db=Depends(get_db),
) -> dict:
    if not creds:
        raise AuthInvalid("Not authenticated")
    payload = decode_access_token(creds.credentials)

    user = user_crud.get_user(db, payload["sub"])
    if not user or not user.get("isActive", True):
        raise AuthInvalid("Could not validate credentials")
    return user


#  Role-based access control
def require_role(allowed_roles: list[str]):
    def _role_checker(current_user: dict = Depends(get_current_user)):
        if current_user["role"] not in allowed_roles:
            raise Forbidden()
        return current_user
    return _role_checker
