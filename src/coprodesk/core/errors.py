"""Error taxonomy surfaced to API clients as human-readable messages."""

from __future__ import annotations


class CoproDeskError(Exception):
    """Base class for failures reported to the user.

    ``status_code`` is the HTTP status the web layer answers with.
    """

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BackendError(CoproDeskError):
    """The data store could not be reached or rejected the request."""

    status_code = 503


class AuthenticationError(CoproDeskError):
    status_code = 401


class AuthorizationError(CoproDeskError):
    """The role lacks permission. Checked before any write is issued."""

    status_code = 403


class InputValidationError(CoproDeskError):
    """A required field is empty or a value is out of range."""

    status_code = 422


class NotFoundError(CoproDeskError):
    status_code = 404


class SessionTimeoutError(CoproDeskError):
    status_code = 504
