"""
Provider error normalization.

Maps raw provider codes onto the auth error taxonomy. Anything not listed
becomes UnknownAuthException and keeps the provider's own message.
"""

import logging
from typing import Dict, Type

from common.auth.base import ProviderError
from common.utils.exceptions import (
    AuthException,
    InvalidCredentialException,
    AccountNotFoundException,
    IdentifierInvalidException,
    NetworkException,
    RateLimitException,
    EmailAlreadyInUseException,
    WeakPasswordException,
    SessionExpiredException,
    MissingPhoneNumberException,
    UnknownAuthException,
)

logger = logging.getLogger(__name__)


PROVIDER_ERROR_MAP: Dict[str, Type[AuthException]] = {
    "INVALID_PASSWORD": InvalidCredentialException,
    "INVALID_LOGIN_CREDENTIALS": InvalidCredentialException,
    "INVALID_CODE": InvalidCredentialException,
    "INVALID_IDP_RESPONSE": InvalidCredentialException,
    "USER_DISABLED": InvalidCredentialException,
    "EMAIL_NOT_FOUND": AccountNotFoundException,
    "USER_NOT_FOUND": AccountNotFoundException,
    "INVALID_EMAIL": IdentifierInvalidException,
    "INVALID_PHONE_NUMBER": IdentifierInvalidException,
    "INVALID_IDENTIFIER": IdentifierInvalidException,
    "NETWORK_ERROR": NetworkException,
    "TOO_MANY_ATTEMPTS_TRY_LATER": RateLimitException,
    "QUOTA_EXCEEDED": RateLimitException,
    "EMAIL_EXISTS": EmailAlreadyInUseException,
    "WEAK_PASSWORD": WeakPasswordException,
    "SESSION_EXPIRED": SessionExpiredException,
    "INVALID_SESSION_INFO": SessionExpiredException,
    "CODE_EXPIRED": SessionExpiredException,
    "MISSING_PHONE_NUMBER": MissingPhoneNumberException,
}

CANCELLED_MESSAGE = "Sign-in was cancelled"


def map_provider_error(error: ProviderError) -> AuthException:
    """
    Translate a provider failure into the taxonomy.

    Known codes get the taxonomy's default user-facing message; the raw
    provider code and message are preserved in ``details``.
    """
    details = {"providerCode": error.code, "providerMessage": error.message}

    exception_class = PROVIDER_ERROR_MAP.get(error.code)
    if exception_class is None:
        if error.code == "CANCELLED":
            return UnknownAuthException(CANCELLED_MESSAGE, code="CANCELLED", details=details)
        logger.debug(f"Unmapped provider error code: {error.code}")
        return UnknownAuthException(error.message, details=details)

    return exception_class(details=details)
