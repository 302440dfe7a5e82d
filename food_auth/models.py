"""
Domain models for the auth core.

Session is the local, authoritative "who is signed in" record. It is
immutable: every change produces a new snapshot.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from common.auth.base import ProviderPrincipal

# Namespace for local session ids; ids are stable per provider account
SESSION_NAMESPACE = uuid.UUID("5b0f5d8e-4c51-4a8e-9c7e-2f1f8a0d6c11")

MIN_DERIVED_USERNAME_LENGTH = 3


def derive_username(display_name: Optional[str]) -> Optional[str]:
    """
    Derive a username from a display name.

    "Ana María López" -> "ana.maría.lópez". Returns None when the result
    would be shorter than three characters.
    """
    if not display_name:
        return None

    username = "".join(display_name.lower().replace(" ", ".").split())
    return username if len(username) >= MIN_DERIVED_USERNAME_LENGTH else None


class Session(BaseModel):
    """Signed-in principal as seen by the application."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    provider_uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    username: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_principal(
        cls,
        principal: ProviderPrincipal,
        username: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> "Session":
        """
        Build a snapshot from a provider principal.

        Args:
            principal: Principal reported by the provider
            username: Chosen username; derived from the display name if None
            display_name: Overrides the principal's display name
        """
        name = display_name or principal.display_name
        return cls(
            id=uuid.uuid5(SESSION_NAMESPACE, principal.uid),
            provider_uid=principal.uid,
            email=principal.email,
            display_name=name,
            username=username or derive_username(name),
            phone_number=principal.phone_number,
            photo_url=principal.photo_url,
        )

    def merged(
        self,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> "Session":
        """Copy with the given fields replaced; None keeps the prior value."""
        changes = {
            key: value
            for key, value in (
                ("display_name", display_name),
                ("photo_url", photo_url),
                ("phone_number", phone_number),
            )
            if value is not None
        }
        return self.model_copy(update=changes)


class PendingRegistration(BaseModel):
    """Sign-up form data held by the caller until sign-up completes."""

    email: str
    password: str = Field(..., repr=False)
    first_name: str
    last_name: str
    username: str
    phone_number: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
