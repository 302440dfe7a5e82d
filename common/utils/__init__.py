"""
Utilities module - Auth exceptions, identifier validators and password rules.
"""

from common.utils.exceptions import (
    AuthErrorKind,
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
from common.utils.validators import (
    LoginType,
    classify_identifier,
    is_valid_email,
    is_valid_username,
    is_valid_phone,
    normalize_phone_number,
    mask_phone_number,
)
from common.utils.password import (
    PasswordTier,
    PasswordStrengthResult,
    meets_minimum_password_policy,
    evaluate_password_strength,
)

__all__ = [
    "AuthErrorKind",
    "AuthException",
    "InvalidCredentialException",
    "AccountNotFoundException",
    "IdentifierInvalidException",
    "NetworkException",
    "RateLimitException",
    "EmailAlreadyInUseException",
    "WeakPasswordException",
    "SessionExpiredException",
    "MissingPhoneNumberException",
    "UnknownAuthException",
    "LoginType",
    "classify_identifier",
    "is_valid_email",
    "is_valid_username",
    "is_valid_phone",
    "normalize_phone_number",
    "mask_phone_number",
    "PasswordTier",
    "PasswordStrengthResult",
    "meets_minimum_password_policy",
    "evaluate_password_strength",
]
