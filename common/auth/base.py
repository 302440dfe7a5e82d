"""
Abstract identity provider interfaces.

Defines the contracts the auth core orchestrates but does not implement:
credential sign-in, phone one-time passcodes and the Google account picker.
Swapping Firebase for another provider means implementing these classes,
without changing the auth core.

Example:
    from common.auth import IdentityProvider, OtpProvider, FirebaseIdentityProvider

    provider = FirebaseIdentityProvider(settings, http_client, google_credentials)
    principal = await provider.sign_in_with_email_password(email, password)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class ProviderError(Exception):
    """
    Raised by provider adapters.

    ``code`` is the provider's own error code (e.g. ``INVALID_PASSWORD``);
    the auth core maps it to its normalized taxonomy.
    """

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ProviderError(code={self.code!r}, message={self.message!r})"


class ProviderPrincipal(BaseModel):
    """Identity record returned by a provider after authentication."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    is_new_user: Optional[bool] = None

    @property
    def is_first_sign_in(self) -> bool:
        """
        True when this is the account's first sign-in.

        An explicit provider flag wins; otherwise the account is new when
        its creation time equals its last sign-in time.
        """
        if self.is_new_user is not None:
            return self.is_new_user
        if self.created_at is None or self.last_sign_in_at is None:
            return False
        return self.created_at == self.last_sign_in_at


PrincipalListener = Callable[[Optional[ProviderPrincipal]], None]


class IdentityProvider(ABC):
    """
    Abstract credential provider.

    All methods that talk to the provider are async and raise
    ProviderError on failure.
    """

    @abstractmethod
    async def sign_in_with_google(self) -> ProviderPrincipal:
        """
        Run the Google account flow and exchange it for a principal.

        Raises:
            ProviderError: code ``CANCELLED`` when the user backs out
        """
        pass

    @abstractmethod
    async def sign_in_with_email_password(
        self,
        email: str,
        password: str,
    ) -> ProviderPrincipal:
        """
        Sign in with email and password.

        Raises:
            ProviderError: If credentials are rejected
        """
        pass

    @abstractmethod
    async def create_account(
        self,
        email: str,
        password: str,
    ) -> ProviderPrincipal:
        """
        Create an email/password account and sign it in.

        Raises:
            ProviderError: ``EMAIL_EXISTS``, ``WEAK_PASSWORD``, ...
        """
        pass

    @abstractmethod
    async def update_profile(
        self,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> ProviderPrincipal:
        """
        Update the signed-in account's profile.

        Returns:
            The updated principal
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """Forget the signed-in principal."""
        pass

    @abstractmethod
    def current_principal(self) -> Optional[ProviderPrincipal]:
        """The signed-in principal, or None."""
        pass

    @abstractmethod
    def add_listener(self, listener: PrincipalListener) -> None:
        """Register for principal-changed notifications."""
        pass

    @abstractmethod
    def remove_listener(self, listener: PrincipalListener) -> None:
        """Stop receiving principal-changed notifications."""
        pass


class OtpProvider(ABC):
    """Abstract SMS one-time passcode provider."""

    @abstractmethod
    async def request_code(self, phone_number: str) -> str:
        """
        Send a verification code by SMS.

        Returns:
            Opaque verification id correlating the later confirmation

        Raises:
            ProviderError: If the number is rejected or quota is exceeded
        """
        pass

    @abstractmethod
    async def confirm_code(
        self,
        verification_id: str,
        code: str,
    ) -> ProviderPrincipal:
        """
        Exchange a verification id and code for a principal.

        Raises:
            ProviderError: ``INVALID_CODE``, ``SESSION_EXPIRED``, ...
        """
        pass


class GoogleCredentialSource(ABC):
    """
    Source of Google tokens.

    Stands in for the native Google account picker, which lives outside
    the auth core.
    """

    @abstractmethod
    async def get_google_tokens(self) -> Tuple[str, Optional[str]]:
        """
        Obtain Google tokens for the user.

        Returns:
            Tuple of (id_token, access_token)

        Raises:
            ProviderError: code ``CANCELLED`` when the user backs out
        """
        pass
