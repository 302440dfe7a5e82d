"""
Common library for reusable infrastructure components.

- auth: Identity provider contracts and the Firebase REST provider
- config: Frozen settings resolved once at startup
- database: Async MongoDB connection
- storage: Profile asset storage (Firebase Storage)
- utils: Auth exceptions, identifier validators, password rules
"""

from common.auth import (
    IdentityProvider,
    OtpProvider,
    GoogleCredentialSource,
    ProviderError,
    ProviderPrincipal,
    FirebaseIdentityProvider,
)
from common.config import AuthSettings, load_settings
from common.database import MongoDB
from common.storage import ProfileAssetStore, StorageError, FirebaseStorageAssetStore
from common.utils import (
    AuthErrorKind,
    AuthException,
    LoginType,
    PasswordTier,
    PasswordStrengthResult,
    classify_identifier,
    meets_minimum_password_policy,
    evaluate_password_strength,
)

__all__ = [
    # Auth
    "IdentityProvider",
    "OtpProvider",
    "GoogleCredentialSource",
    "ProviderError",
    "ProviderPrincipal",
    "FirebaseIdentityProvider",
    # Config
    "AuthSettings",
    "load_settings",
    # Database
    "MongoDB",
    # Storage
    "ProfileAssetStore",
    "StorageError",
    "FirebaseStorageAssetStore",
    # Utils
    "AuthErrorKind",
    "AuthException",
    "LoginType",
    "PasswordTier",
    "PasswordStrengthResult",
    "classify_identifier",
    "meets_minimum_password_policy",
    "evaluate_password_strength",
]
