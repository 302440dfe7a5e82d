"""
Food app authentication core.

- auth: Facade, observable state, phone verification and session reconciliation
- onboarding: First-run profile photo and interests flow
- models: Session and sign-up form data
- dependencies: Composition root
"""

from food_auth.models import Session, PendingRegistration, derive_username
from food_auth.auth import AuthFacade, AuthState, AuthStateStore
from food_auth.onboarding import OnboardingFlow, OnboardingStep
from food_auth.dependencies import (
    configure_logging,
    connect_database,
    create_auth_facade,
    create_onboarding_flow,
)

__all__ = [
    "Session",
    "PendingRegistration",
    "derive_username",
    "AuthFacade",
    "AuthState",
    "AuthStateStore",
    "OnboardingFlow",
    "OnboardingStep",
    "configure_logging",
    "connect_database",
    "create_auth_facade",
    "create_onboarding_flow",
]
