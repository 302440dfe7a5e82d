"""
Authentication module - Provider contracts and the Firebase REST provider.
"""

from common.auth.base import (
    IdentityProvider,
    OtpProvider,
    GoogleCredentialSource,
    ProviderError,
    ProviderPrincipal,
    PrincipalListener,
)
from common.auth.firebase_auth import FirebaseIdentityProvider

__all__ = [
    "IdentityProvider",
    "OtpProvider",
    "GoogleCredentialSource",
    "ProviderError",
    "ProviderPrincipal",
    "PrincipalListener",
    "FirebaseIdentityProvider",
]
