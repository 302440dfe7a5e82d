"""
Authentication exceptions with error codes.

Every failure the auth core publishes is one of a fixed set of kinds.
Each exception carries a human-readable message, a machine-readable code
and optional details, so the UI can switch on ``kind`` and still show the
provider's own wording when nothing better is available.

Example:
    from common.utils import AccountNotFoundException

    email = await directory.find_email_by_username(username)
    if not email:
        raise AccountNotFoundException("No account for this username")
"""

from enum import Enum
from typing import Optional, Any, Dict


class AuthErrorKind(str, Enum):
    """Normalized error taxonomy."""

    INVALID_CREDENTIAL = "InvalidCredential"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    IDENTIFIER_INVALID = "IdentifierInvalid"
    NETWORK_ERROR = "NetworkError"
    RATE_LIMITED = "RateLimited"
    EMAIL_ALREADY_IN_USE = "EmailAlreadyInUse"
    WEAK_PASSWORD = "WeakPassword"
    SESSION_EXPIRED = "SessionExpired"
    MISSING_PHONE_NUMBER = "MissingPhoneNumber"
    UNKNOWN = "Unknown"


class AuthException(Exception):
    """
    Base auth exception with error code support.

    Provides a consistent error shape across sign-in, sign-up and phone flows.
    """

    kind: AuthErrorKind = AuthErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        """
        Create an auth exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.kind.name
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging or display layers."""
        detail: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
        }

        if self.details is not None:
            detail["details"] = self.details

        return detail

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthException):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.code == other.code
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.code))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code!r})"


class InvalidCredentialException(AuthException):
    """Wrong password or invalid verification code."""

    kind = AuthErrorKind.INVALID_CREDENTIAL

    def __init__(
        self,
        message: str = "Invalid credentials",
        code: str = "INVALID_CREDENTIAL",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class AccountNotFoundException(AuthException):
    """No account exists for the identifier."""

    kind = AuthErrorKind.ACCOUNT_NOT_FOUND

    def __init__(
        self,
        message: str = "No account exists for this identifier",
        code: str = "ACCOUNT_NOT_FOUND",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class IdentifierInvalidException(AuthException):
    """Malformed email, username or phone number."""

    kind = AuthErrorKind.IDENTIFIER_INVALID

    def __init__(
        self,
        message: str = "The identifier is not valid",
        code: str = "IDENTIFIER_INVALID",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class NetworkException(AuthException):
    """Connection problem talking to a provider."""

    kind = AuthErrorKind.NETWORK_ERROR

    def __init__(
        self,
        message: str = "Connection error. Check your internet connection",
        code: str = "NETWORK_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class RateLimitException(AuthException):
    """Too many attempts or provider quota exceeded."""

    kind = AuthErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Too many attempts. Please try again later",
        code: str = "RATE_LIMITED",
        details: Optional[Any] = None,
        retry_after: Optional[int] = None,
    ):
        if retry_after:
            details = {"retryAfter": retry_after, **(details or {})}
        super().__init__(message, code, details)
        self.retry_after = retry_after


class EmailAlreadyInUseException(AuthException):
    """Sign-up with an email that already has an account."""

    kind = AuthErrorKind.EMAIL_ALREADY_IN_USE

    def __init__(
        self,
        message: str = "This email is already in use",
        code: str = "EMAIL_ALREADY_IN_USE",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class WeakPasswordException(AuthException):
    """Password fails the minimum policy (checked locally before sign-up)."""

    kind = AuthErrorKind.WEAK_PASSWORD

    def __init__(
        self,
        message: str = (
            "Password must be at least 8 characters with one uppercase "
            "and one lowercase letter"
        ),
        code: str = "WEAK_PASSWORD",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class SessionExpiredException(AuthException):
    """The OTP verification id is stale; a new code must be requested."""

    kind = AuthErrorKind.SESSION_EXPIRED

    def __init__(
        self,
        message: str = "The verification code has expired. Request a new one",
        code: str = "SESSION_EXPIRED",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class MissingPhoneNumberException(AuthException):
    """Phone flow started without a phone number."""

    kind = AuthErrorKind.MISSING_PHONE_NUMBER

    def __init__(
        self,
        message: str = "A phone number is required",
        code: str = "MISSING_PHONE_NUMBER",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)


class UnknownAuthException(AuthException):
    """Catch-all; carries the provider's raw message."""

    kind = AuthErrorKind.UNKNOWN

    def __init__(
        self,
        message: str = "Something went wrong",
        code: str = "UNKNOWN",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, details)
