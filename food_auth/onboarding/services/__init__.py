"""
Onboarding services: progress storage and the step flow.
"""

from food_auth.onboarding.services.onboarding_store import OnboardingStore, MongoOnboardingStore
from food_auth.onboarding.services.onboarding_flow import OnboardingFlow

__all__ = [
    "OnboardingStore",
    "MongoOnboardingStore",
    "OnboardingFlow",
]
