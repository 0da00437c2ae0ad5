# telehealth/services/identity_service.py

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError
from pymongo.errors import DuplicateKeyError

from telehealth.core import config
from telehealth.core.errors import AuthInvalid, Conflict
from telehealth.core.logger import logger
from telehealth.core.security import create_access_token
from telehealth.crud import user_crud
from telehealth.models.user import Role, to_user_out


class IdentityProvider:
    """
    Verifies ID tokens minted by the external identity provider.

    Key, algorithms, audience and issuer come from the IDENTITY_* settings;
    for an RS256 provider ``IDENTITY_VERIFY_KEY`` holds the public key.
    """

    def __init__(self, key: str = None, algorithms=None, audience: str = None, issuer: str = None):
        self.key = key or config.IDENTITY_VERIFY_KEY
        self.algorithms = algorithms or config.IDENTITY_ALGORITHMS
        self.audience = audience if audience is not None else config.IDENTITY_AUDIENCE
        self.issuer = issuer if issuer is not None else config.IDENTITY_ISSUER

    def verify(self, credential: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(
                credential,
                self.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except JWTError as e:
            logger.warning(f"Identity credential rejected: {str(e)}")
            raise AuthInvalid("Invalid or expired identity credential")

        uid = claims.get("user_id") or claims.get("sub")
        if not uid:
            raise AuthInvalid("Identity credential has no subject")
        return {
            "uid": uid,
            "email": claims.get("email"),
            "name": claims.get("name"),
            "picture": claims.get("picture"),
        }


class IdentityGateway:
    """Exchanges identity-provider credentials for application sessions."""

    def __init__(self, db, provider: IdentityProvider = None):
        if db is None:
            raise ValueError("Database connection is required")
        self.db = db
        self.provider = provider or IdentityProvider()

    def exchange(self, credential: str) -> Dict[str, Any]:
        """
        Verify ``credential`` and return ``{"token", "user"}``. A first
        sign-in registers the caller as a patient.
        """
        identity = self.provider.verify(credential)
        user = user_crud.get_user_by_external_id(self.db, identity["uid"])
        if user is None:
            user = self._create(identity, Role.PATIENT, {})
        return self._session_for(user)

    def register(self, credential: str, role: Role, name: Optional[str] = None, profile: dict = None) -> Dict[str, Any]:
        identity = self.provider.verify(credential)
        if user_crud.get_user_by_external_id(self.db, identity["uid"]) is not None:
            raise Conflict("User already registered")
        if name:
            identity["name"] = name
        user = self._create(identity, role, profile or {})
        return self._session_for(user)

    def _create(self, identity: dict, role: Role, profile: dict) -> dict:
        now = datetime.now(timezone.utc)
        doc = {
            "externalId": identity["uid"],
            "name": identity.get("name") or (identity.get("email") or "").split("@")[0] or "User",
            "email": identity.get("email"),
            "profileImage": identity.get("picture"),
            "role": role.value,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
            **profile,
        }
        if role == Role.DOCTOR:
            doc.setdefault("isAcceptingAppointments", True)
            doc.setdefault("availability", [])
            doc.setdefault("rating", 0)
        try:
            user = user_crud.create_user(self.db, doc)
        except DuplicateKeyError:
            raise Conflict("User already registered")
        logger.info(f"Registered {role.value} {user['_id']} ({doc['email']})")
        return user

    def _session_for(self, user: dict) -> Dict[str, Any]:
        if not user.get("isActive", True):
            raise AuthInvalid("Your account has been deactivated. Please contact administrator.")

        # role always comes from the stored record
        token = create_access_token({"sub": str(user["_id"]), "role": user["role"]})
        try:
            user_crud.touch_last_login(self.db, user["_id"], datetime.now(timezone.utc))
        except Exception as e:
            logger.error(f"Failed to update login time for {user['_id']}: {str(e)}")
        return {"token": token, "user": to_user_out(user)}
