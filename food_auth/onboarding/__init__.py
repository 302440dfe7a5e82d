"""
Onboarding

First-run flow: profile photo, food interests and completion tracking.
"""

from food_auth.onboarding.models import OnboardingStep, InterestOption, StepResult, DEFAULT_INTERESTS
from food_auth.onboarding.services import OnboardingStore, MongoOnboardingStore, OnboardingFlow
from food_auth.onboarding.pipelines import finish_onboarding_pipeline

__all__ = [
    "OnboardingStep",
    "InterestOption",
    "StepResult",
    "DEFAULT_INTERESTS",
    "OnboardingStore",
    "MongoOnboardingStore",
    "OnboardingFlow",
    "finish_onboarding_pipeline",
]
