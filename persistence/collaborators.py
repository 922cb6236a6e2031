"""
Purpose: Contracts for everything the persistence coordinator talks to but does not own.
What it does:
- RemoteResult: explicit success/error value returned by every remote call
- RemoteRouteService: create/update/delete/list/get_by_id against the server
- AuthGate: "is the user signed in / allowed", plus the re-login trigger
- Notifier: user-facing messages (toasts, status bar, log)

Also ships two small in-process implementations (StaticAuthGate, LoggingNotifier)
for scripts and headless use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteResult:
    """
    Outcome of one remote call. Remote services return this instead of raising,
    so failure classification stays a pure function over the value.
    """
    ok: bool
    data: Any = None
    message: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def success(cls, data: Any = None, status: Optional[int] = 200) -> RemoteResult:
        return cls(ok=True, data=data, status=status)

    @classmethod
    def failure(cls, message: str, status: Optional[int] = None) -> RemoteResult:
        return cls(ok=False, message=message, status=status)


class RemoteRouteService(Protocol):
    def create(self, request: Any) -> RemoteResult: ...

    def update(self, route_id: str, request: Any) -> RemoteResult: ...

    def delete(self, route_id: str) -> RemoteResult: ...

    def list(self) -> RemoteResult: ...

    def get_by_id(self, route_id: str) -> RemoteResult: ...


class AuthGate(Protocol):
    def is_authenticated(self) -> bool: ...

    def has_role(self, role: str) -> bool: ...

    def on_auth_required(self) -> None: ...


class Severity(str, Enum):
    INFO = "info"
    ERROR = "error"


class Notifier(Protocol):
    def notify(self, title: str, description: str, severity: Severity) -> None: ...


@dataclass
class StaticAuthGate:
    """
    Auth state held in memory. on_login_required is called whenever the
    coordinator needs the user to (re)authenticate.
    """
    authenticated: bool = False
    roles: FrozenSet[str] = field(default_factory=frozenset)
    on_login_required: Optional[Callable[[], None]] = None

    @classmethod
    def signed_in(cls, roles: Iterable[str] = ("ADMIN",)) -> StaticAuthGate:
        return cls(authenticated=True, roles=frozenset(roles))

    def is_authenticated(self) -> bool:
        return self.authenticated

    def has_role(self, role: str) -> bool:
        # role names are compared case-insensitively ("ADMIN" vs "admin")
        return self.authenticated and role.lower() in {r.lower() for r in self.roles}

    def on_auth_required(self) -> None:
        self.authenticated = False
        if self.on_login_required:
            self.on_login_required()


class LoggingNotifier:
    """
    Notifier that writes to the logging system and remembers what it sent.
    """
    def __init__(self):
        self.history: List[tuple] = []

    def notify(self, title: str, description: str, severity: Severity = Severity.INFO) -> None:
        self.history.append((title, description, severity))
        if severity == Severity.ERROR:
            logger.error(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")
