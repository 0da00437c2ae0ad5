# telehealth/client/access.py
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from telehealth.client.session import Session, SessionStatus

LOGIN_PATH = "/login"
DEFAULT_PATH = "/"


@dataclass(frozen=True)
class Requirement:
    authenticated: bool = False
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def public(cls) -> "Requirement":
        return cls()

    @classmethod
    def signed_in(cls, roles: Iterable[str] = ()) -> "Requirement":
        return cls(authenticated=True, roles=frozenset(roles))


class Action(str, Enum):
    PENDING = "pending"
    REDIRECT = "redirect"
    ALLOW = "allow"


@dataclass(frozen=True)
class Decision:
    action: Action
    location: Optional[str] = None
    return_to: Optional[str] = None


def evaluate_access(requested: str, requirement: Requirement, session: Session,
                    login_path: str = LOGIN_PATH, default_path: str = DEFAULT_PATH) -> Decision:
    if session.status is SessionStatus.PENDING:
        return Decision(Action.PENDING)
    if requirement.authenticated and not session.is_authenticated:
        return Decision(Action.REDIRECT, location=login_path, return_to=requested)
    if requirement.roles and session.role not in requirement.roles:
        return Decision(Action.REDIRECT, location=default_path)
    return Decision(Action.ALLOW, location=requested)


class AccessGate:
    """
    Route guard bound to a ``SessionStore``. Reads the store on every
    call; nothing is remembered between decisions.
    """

    def __init__(self, store, login_path: str = LOGIN_PATH, default_path: str = DEFAULT_PATH):
        self.store = store
        self.login_path = login_path
        self.default_path = default_path

    def decide(self, requested: str, requirement: Requirement) -> Decision:
        return evaluate_access(requested, requirement, self.store.current, self.login_path, self.default_path)

    def watch(self, requested: str, requirement: Requirement, on_decision):
        """Call ``on_decision`` now and after every session change; returns an unsubscribe callable."""
        on_decision(self.decide(requested, requirement))
        return self.store.subscribe(lambda _session: on_decision(self.decide(requested, requirement)))
