"""
Purpose: Failure taxonomy for save/update/delete and the auth-failure classifier.

- ValidationError  -> a required field is missing/out of range (before any network call)
- AuthRequired     -> remote-tier operation while signed out or lacking the role
- SessionExpired   -> remote call failed with an authorization-failure message
- RemoteFailure    -> any other failed remote result or transport exception

The coordinator raises these internally and absorbs them at its boundary.
"""

from __future__ import annotations

from typing import Iterable, Optional

from routes.policy import AUTH_FAILURE_MARKERS

from .collaborators import RemoteResult


class PersistenceError(Exception):
    """Base class for every failure the persistence coordinator reports."""
    title = "Save Failed"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ValidationError(PersistenceError):
    """Raised when route data fails local validation."""
    title = "Invalid Route"


class AuthRequired(PersistenceError):
    """Raised when a server operation is attempted without (sufficient) authentication."""
    title = "Authentication Required"


class SessionExpired(AuthRequired):
    """Raised when the server rejected a call that looked authenticated."""
    title = "Session Expired"


class RemoteFailure(PersistenceError):
    """Raised for any other unsuccessful remote result."""
    title = "Server Error"


def is_auth_failure(
    message: Optional[str],
    status: Optional[int] = None,
    markers: Iterable[str] = AUTH_FAILURE_MARKERS,
) -> bool:
    """
    True when a failure looks like an authorization problem.

    Case-insensitive substring match of the message against a small fixed set of
    markers. A structured 401 status counts too, so this can move to typed
    codes once the transport exposes them everywhere.
    """
    if status == 401:
        return True
    if not message:
        return False
    lowered = message.lower()
    return any(marker.lower() in lowered for marker in markers)


def classify_remote_failure(
    result: RemoteResult,
    markers: Iterable[str] = AUTH_FAILURE_MARKERS,
) -> PersistenceError:
    """
    Map a failed RemoteResult onto SessionExpired or RemoteFailure.
    """
    message = result.message or "Unknown error"
    if is_auth_failure(result.message, result.status, markers):
        return SessionExpired(message, status=result.status)
    return RemoteFailure(message, status=result.status)
