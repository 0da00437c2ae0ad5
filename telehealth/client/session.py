# telehealth/client/session.py
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from telehealth.core.errors import TelehealthError
from telehealth.core.logger import get_module_logger

logger = get_module_logger("client.session")

TOKEN_KEY = "authToken"
USER_KEY = "currentUser"
MIN_TOKEN_LENGTH = 20
PLACEHOLDER_TOKENS = ("undefined", "null")


class SessionStatus(str, Enum):
    PENDING = "pending"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    status: SessionStatus
    token: Optional[str] = None
    user: Optional[dict] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role") if self.user else None


PENDING = Session(SessionStatus.PENDING)
SIGNED_OUT = Session(SessionStatus.UNAUTHENTICATED)


def _user_is_valid(user) -> bool:
    return isinstance(user, dict) and bool(user.get("id") or user.get("_id")) and bool(user.get("role"))


class SessionStore:
    """
    Client session: the app token plus the signed-in user.

    The current state is one immutable ``Session`` swapped under a lock, so
    readers of ``current`` see either signed out or signed in with a user,
    never a mix. Listeners are called after every swap.
    """

    def __init__(self, storage, api, identity=None, min_token_length: int = MIN_TOKEN_LENGTH):
        self.storage = storage
        self.api = api
        self.identity = identity
        self.min_token_length = min_token_length
        self._session = PENDING
        self._lock = threading.Lock()
        self._listeners: List[Callable[[Session], None]] = []

    @property
    def current(self) -> Session:
        return self._session

    def subscribe(self, listener: Callable[[Session], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _publish(self, session: Session) -> None:
        with self._lock:
            self._session = session
        for listener in list(self._listeners):
            listener(session)

    def initialize(self) -> Session:
        """Restore the persisted session, failing closed on anything suspicious."""
        try:
            stored = self.storage.load()
            token = stored.get(TOKEN_KEY)
            user = stored.get(USER_KEY)

            if not token or not user:
                logger.info("No auth data found in storage")
                return self.clear()
            if not isinstance(token, str) or token in PLACEHOLDER_TOKENS or len(token) < self.min_token_length:
                logger.warning("Invalid token format found in storage")
                return self.clear()
            if not _user_is_valid(user):
                logger.warning("Invalid user data found in storage")
                return self.clear()

            self.api.set_auth_token(token)
            self.api.verify_token()
        except TelehealthError as e:
            logger.warning(f"Token verification failed, clearing auth state: {e.detail}")
            return self.clear()
        except Exception as e:
            logger.error(f"Auth initialization failed, clearing auth state: {str(e)}")
            return self.clear()

        logger.info(f"Auth initialized with role: {user['role']}")
        session = Session(SessionStatus.AUTHENTICATED, token=token, user=user)
        self._publish(session)
        return session

    def login(self, token: str, user: dict) -> dict:
        """Persist and activate a session handed out by the server."""
        if not token or not _user_is_valid(user):
            raise ValueError("login needs a token and a user with id and role")

        # role is the server's, never overridden client side
        stored_user = {**user, "role": user["role"]}
        self.storage.save({TOKEN_KEY: token, USER_KEY: stored_user})
        self.api.set_auth_token(token)
        self._publish(Session(SessionStatus.AUTHENTICATED, token=token, user=stored_user))
        logger.info(f"Logged in as {stored_user['role']}")
        return stored_user

    def login_with_credential(self, credential: str, provider: str = "google") -> dict:
        response = self.api.authenticate(credential, provider)
        return self.login(response["token"], response["user"])

    def logout(self) -> None:
        """Sign out of the identity provider, then clear. Clearing always happens."""
        try:
            if self.identity is not None:
                self.identity.sign_out()
        finally:
            self.clear()

    def clear(self) -> Session:
        logger.info("Clearing auth state")
        self.storage.clear()
        self.api.clear_auth_token()
        self._publish(SIGNED_OUT)
        return SIGNED_OUT
