"""Exception hierarchy shared by the store, cache, identity and gateway layers."""

from __future__ import annotations

GENERIC_FAILURE_REASON = "Something went wrong, please try again later"
LOGIN_FAILURE_REASON = "Invalid UserMail or Password"


class QuizzerError(Exception):
    """Base exception for the quizzer server."""


class ValidationError(QuizzerError):
    """Raised for malformed or missing payload fields."""


class InvalidEmail(ValidationError):
    """Raised when an e-mail address fails the syntax check."""

    reason = "Invalid UserMail"


class AuthError(QuizzerError):
    """Raised when authentication fails; ``reason`` is safe to send to the client."""

    reason = GENERIC_FAILURE_REASON

    def __init__(self, message: str = "", reason: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        if reason is not None:
            self.reason = reason


class NoSuchUser(AuthError):
    reason = LOGIN_FAILURE_REASON


class BadCredentials(AuthError):
    reason = LOGIN_FAILURE_REASON


class SessionExpired(AuthError):
    reason = "Session Expired"


class BadToken(AuthError):
    reason = "Invalid Session"


class EmailInUse(AuthError):
    reason = "UserMail already in use"


class InvalidToken(AuthError):
    reason = "Invalid Verification Link"


class ExpiredToken(AuthError):
    reason = "Verification Link Expired"


class AuthorizationError(QuizzerError):
    """Raised when a connection lacks admin privileges."""


class StoreError(QuizzerError):
    """Raised when the document store cannot be read or written."""


class StoreUnavailable(StoreError):
    """Raised when the document store connection cannot be established."""


class MailDispatchError(QuizzerError):
    """Raised when the verification mail could not be sent."""


class ConnectionClosed(AuthError):
    """Raised when a login completes after its connection already closed."""
